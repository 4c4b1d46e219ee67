"""
摄像头帧源（硬件层）

职责：
1. 打开摄像头：open() - 失败时抛出 CameraAccessError
2. 读取当前帧：current_frame() - 阻塞读取，流尚未就绪时返回 None
3. 释放摄像头：close() - 可重复调用

不负责：
- 定时循环
- 目标检测 / 分类
"""
import os
import threading
from dataclasses import dataclass
from typing import Optional, Dict, Any

import cv2

from wastesort.common import Logger
from wastesort.errors import CameraAccessError, CameraErrorKind
from .frame import Frame


@dataclass
class CameraSourceConfig:
    """CameraSource 配置对象"""
    camera_index: int = 0  # 负数表示没有可用摄像头
    resolution: tuple = (1280, 720)
    flush_frames: int = 2  # 读取前丢弃的缓冲帧数

    # 日志配置
    log_dir: str = "logs"


class CameraSource:
    """摄像头帧源

    设计原则：
    - 只管理硬件操作
    - 使用锁保护 open/read/close（read 在工作线程中执行）
    - 摄像头句柄由当前扫描会话独占
    """

    def __init__(self, config: CameraSourceConfig):
        """
        Args:
            config: 帧源配置对象
        """
        self._config = config
        self.logger = Logger(config.log_dir)
        self.cap: Optional[cv2.VideoCapture] = None

        # 线程安全锁（保护 cap）
        self._lock = threading.Lock()

        self.logger.log("camera", "info", f"CameraSource 初始化 - 索引: {config.camera_index}")

    @property
    def is_open(self) -> bool:
        return self.cap is not None and self.cap.isOpened()

    # ==================== 打开 / 关闭 ====================

    def open(self):
        """打开摄像头

        Raises:
            CameraAccessError: 不支持、无权限或设备错误
        """
        with self._lock:
            if self.cap is not None and self.cap.isOpened():
                self.logger.log("camera", "info", "摄像头已经打开")
                return

            index = self._config.camera_index
            if index < 0 or not self._has_camera_backend():
                self.logger.log("camera", "error", f"不支持摄像头 (索引: {index})")
                raise CameraAccessError(CameraErrorKind.NOT_SUPPORTED)

            try:
                cap = cv2.VideoCapture(index)
            except cv2.error as e:
                self.logger.log("camera", "error", f"摄像头初始化失败: {e}")
                raise CameraAccessError(CameraErrorKind.DEVICE_ERROR) from e

            if not cap.isOpened():
                cap.release()
                kind = (CameraErrorKind.PERMISSION_DENIED
                        if self._permission_denied(index) else CameraErrorKind.DEVICE_ERROR)
                self.logger.log("camera", "error", f"无法打开摄像头 (索引: {index}, 原因: {kind.value})")
                raise CameraAccessError(kind)

            # 设置分辨率
            width, height = self._config.resolution
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

            # 设置缓冲区大小
            cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

            self.cap = cap
            self.logger.log("camera", "info", f"摄像头已打开 - 索引: {index}")

    def close(self):
        """释放摄像头（可重复调用）"""
        with self._lock:
            if self.cap is not None:
                self.cap.release()
                self.cap = None
                self.logger.log("camera", "info", "摄像头已关闭")

    # ==================== 帧读取 ====================

    def current_frame(self) -> Optional[Frame]:
        """读取当前帧（阻塞）

        Returns:
            Frame，摄像头未打开或帧尺寸尚不可用时返回 None
        """
        with self._lock:
            if self.cap is None or not self.cap.isOpened():
                return None

            try:
                # 清空缓冲区，保证拿到最新帧
                for _ in range(self._config.flush_frames):
                    self.cap.grab()

                ret, image = self.cap.read()
            except cv2.error as e:
                self.logger.log("camera", "error", f"读取帧失败: {e}")
                return None

        if not ret or image is None:
            return None

        frame = Frame(image=image)
        if frame.is_empty:
            return None
        return frame

    # ==================== 辅助方法 ====================

    @staticmethod
    def _has_camera_backend() -> bool:
        registry = getattr(cv2, "videoio_registry", None)
        if registry is None:
            return True
        return len(registry.getCameraBackends()) > 0

    @staticmethod
    def _permission_denied(index: int) -> bool:
        """Linux 下设备节点存在但不可读写时视为无权限"""
        device = f"/dev/video{index}"
        return os.path.exists(device) and not os.access(device, os.R_OK | os.W_OK)

    def get_status(self) -> Dict[str, Any]:
        """获取帧源状态"""
        return {
            "camera_index": self._config.camera_index,
            "is_open": self.is_open
        }
