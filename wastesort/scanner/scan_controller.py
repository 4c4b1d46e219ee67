"""
实时扫描控制器

管理摄像头会话、定时扫描、人员过滤和分类结果分发
"""
import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from wastesort.ai.categories import WasteCategory
from wastesort.common import Logger
from wastesort.errors import CameraAccessError, CameraErrorKind, ClassificationError, FailureReason
from wastesort.storage import HistoryEntry, HistoryStore
from wastesort.vision import Detection, to_data_url
from .models import (
    ClassificationOutcome,
    ScanEvent,
    ScanEventType,
    ScanSession,
    ScanState,
    ScanStatus,
)
from .scan_config import PERSON_LABEL, ScanConfig

Listener = Callable[[ScanEvent], None]


class ScanController:
    """实时扫描控制器

    职责：
    1. 会话管理：start() / stop() / pause() / resume()
    2. 定时调度：单一定时任务，按 scan_interval 触发 tick()
    3. 扫描周期：截帧 → 目标检测 → 人员过滤 → 分类 → 写入历史
    4. 结果分发：get_status() 快照 + 事件监听

    并发约定（单线程事件循环）：
    - 同一时间最多只有一个扫描周期在进行，忙碌时 tick() 直接跳过
    - 不强制取消进行中的分类请求；每次挂起恢复后检查会话是否仍然有效，
      会话已关闭则丢弃结果
    """

    def __init__(self,
                 frame_source,
                 classifier,
                 history_store: HistoryStore,
                 config: ScanConfig,
                 detector=None,
                 image_quality: int = 85):
        """
        Args:
            frame_source: 帧源，提供 open() / current_frame() / close()
            classifier: 分类器，提供 async classify(image_data, mime_type)
            history_store: 历史存储
            config: 扫描配置对象
            detector: 目标检测器，提供 async detect(frame)；为 None 时不做人员过滤
            image_quality: 分类和历史记录使用的 JPEG 质量
        """
        self.frame_source = frame_source
        self.classifier = classifier
        self.history = history_store
        self.detector = detector
        self.config = config
        self.image_quality = image_quality

        self.logger = Logger(config.log_dir)

        # 会话状态
        self._session: Optional[ScanSession] = None
        self._generation = 0
        self._starting = False
        self._timer_task: Optional[asyncio.Task] = None
        self._cycle_task: Optional[asyncio.Task] = None

        # 对外展示的结果
        self.detections: List[Detection] = []
        self.outcome: Optional[ClassificationOutcome] = None
        self.status = ScanStatus()

        self._listeners: List[Listener] = []

        self.logger.log("scanner", "info",
                       f"ScanController 初始化 - 扫描间隔: {config.scan_interval}s")

    # ==================== 状态属性 ====================

    @property
    def state(self) -> ScanState:
        if self._session is None:
            return ScanState.CLOSED
        return ScanState.PAUSED if self._session.is_paused else ScanState.SCANNING

    @property
    def session(self) -> Optional[ScanSession]:
        return self._session

    @property
    def is_busy(self) -> bool:
        return self._session is not None and self._session.is_busy

    # ==================== 事件监听 ====================

    def add_listener(self, listener: Listener):
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event_type: ScanEventType, payload: Any = None):
        event = ScanEvent(type=event_type, payload=payload)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                self.logger.log("scanner", "error", f"事件监听器异常 ({event_type.value}): {e}")

    def _emit_state(self):
        self._emit(ScanEventType.STATE_CHANGED, self.state.value)

    # ==================== 配置管理 ====================

    def set_interval(self, seconds) -> int:
        """设置扫描间隔（限制在 1-10 秒），立即按新间隔重新计时

        Returns:
            实际生效的间隔
        """
        self.config.update(scan_interval=seconds)
        self.logger.log("scanner", "info", f"扫描间隔已更新: {self.config.scan_interval}s")

        if self.state == ScanState.SCANNING:
            self._arm_timer()

        return self.config.scan_interval

    def update_config(self, **kwargs):
        """更新配置并自动保存到文件（任一字段不合法时整体不生效）

        Raises:
            ValueError: 字段无法转换
        """
        self.config.update(**kwargs)
        self.logger.log("scanner", "info", f"配置已更新: {list(kwargs.keys())}")

        if "scan_interval" in kwargs and self.state == ScanState.SCANNING:
            self._arm_timer()

    # ==================== 会话管理 ====================

    async def start(self) -> bool:
        """打开摄像头并开始扫描

        Returns:
            是否启动了新会话（已在运行时返回 False）

        Raises:
            CameraAccessError: 摄像头无法打开，保持关闭状态
        """
        if self._session is not None or self._starting:
            self.logger.log("scanner", "warning", "扫描会话已在运行")
            return False

        self.logger.log("scanner", "info", "启动扫描会话")
        self._starting = True
        self._generation += 1
        generation = self._generation

        try:
            await asyncio.to_thread(self.frame_source.open)
        except CameraAccessError as e:
            self._report_camera_error(e)
            raise
        except Exception as e:
            error = CameraAccessError(CameraErrorKind.DEVICE_ERROR)
            self.logger.log("scanner", "error", f"打开摄像头异常: {e}")
            self._report_camera_error(error)
            raise error from e
        finally:
            self._starting = False

        # 打开过程中收到了 stop()
        if generation != self._generation:
            self.logger.log("scanner", "info", "启动过程中会话已被停止，释放摄像头")
            self.frame_source.close()
            return False

        self._session = ScanSession(generation=generation)
        self.status.last_error = None
        self._arm_timer()

        self.logger.log("scanner", "info", f"扫描会话已启动 (第 {generation} 个)")
        self._emit_state()
        return True

    def stop(self) -> bool:
        """停止扫描并释放摄像头

        进行中的扫描周期不会被取消，但其结果会被丢弃

        Returns:
            是否停止了会话
        """
        if self._session is None:
            if self._starting:
                self.logger.log("scanner", "info", "取消正在启动的扫描会话")
                self._generation += 1
                return True
            self.logger.log("scanner", "warning", "扫描会话未在运行")
            return False

        self.logger.log("scanner", "info", "停止扫描会话")
        session = self._session
        session.is_open = False
        session.is_busy = False
        self._session = None
        self._generation += 1

        self._cancel_timer()
        self.detections = []
        self.outcome = None

        # 释放摄像头资源
        self.frame_source.close()
        self.logger.log("scanner", "info", "摄像头资源已释放")

        self._emit(ScanEventType.DETECTIONS, [])
        self._emit(ScanEventType.OUTCOME, None)
        self._emit_state()
        return True

    def pause(self) -> bool:
        """暂停扫描（不再调度新的周期，进行中的周期照常完成）"""
        session = self._session
        if session is None or session.is_paused:
            return False

        session.is_paused = True
        self._cancel_timer()
        self.detections = []

        self.logger.log("scanner", "info", "扫描已暂停")
        self._emit(ScanEventType.DETECTIONS, [])
        self._emit_state()
        return True

    def resume(self) -> bool:
        """恢复扫描"""
        session = self._session
        if session is None or not session.is_paused:
            return False

        session.is_paused = False
        self._arm_timer()

        self.logger.log("scanner", "info", "扫描已恢复")
        self._emit_state()
        return True

    def _report_camera_error(self, error: CameraAccessError):
        self.status.last_error = error.message
        self.logger.log("scanner", "error", f"摄像头访问失败: {error.kind.value}")
        self._emit(ScanEventType.CAMERA_ERROR, {"kind": error.kind.value, "message": error.message})

    # ==================== 定时调度 ====================

    def _arm_timer(self):
        """（重新）创建唯一的定时任务"""
        self._cancel_timer()

        session = self._session
        if session is None or session.is_paused:
            return

        self._timer_task = asyncio.get_running_loop().create_task(
            self._timer_loop(session), name="ScanTimer")

    def _cancel_timer(self):
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None

    async def _timer_loop(self, session: ScanSession):
        """定时循环：每隔 scan_interval 秒尝试一次 tick()"""
        while session is self._session and session.is_open and not session.is_paused:
            await asyncio.sleep(self.config.scan_interval)
            self.tick()

    def tick(self) -> Optional[asyncio.Task]:
        """尝试启动一个扫描周期

        Returns:
            扫描周期任务；未在扫描、已暂停或上一个周期未完成时返回 None
        """
        session = self._session
        if session is None or not session.is_open or session.is_paused:
            return None

        if session.is_busy or self._cycle_in_flight():
            return None

        session.is_busy = True
        self._cycle_task = asyncio.get_running_loop().create_task(
            self._run_cycle(session), name="ScanCycle")
        return self._cycle_task

    def _cycle_in_flight(self) -> bool:
        return self._cycle_task is not None and not self._cycle_task.done()

    def _is_live(self, session: ScanSession) -> bool:
        return session is self._session and session.is_open

    # ==================== 扫描周期 ====================

    async def _run_cycle(self, session: ScanSession):
        """扫描周期边界：任何异常都在这里截获，不影响下一次调度"""
        try:
            await self._classify_cycle(session)
        except Exception as e:
            self.logger.log("scanner", "error", f"扫描周期异常: {e}")
            self.status.last_error = str(e)
        finally:
            session.is_busy = False
            self.status.cycles_completed += 1

    async def _classify_cycle(self, session: ScanSession):
        """单个扫描周期

        流程：
        1. 截取当前帧
        2. 目标检测，并发布检测框
        3. 画面中有人：清空结果，跳过分类
        4. 调用分类器
        5. 会话仍然有效时写入结果和历史
        """
        # 1. 截帧
        frame = await asyncio.to_thread(self.frame_source.current_frame)
        if frame is None or frame.is_empty:
            self.logger.log("scanner", "info", "视频流尚未就绪，跳过本次扫描")
            return

        if not self._is_live(session):
            self._discard("截帧")
            return

        # 2. 目标检测
        detections: List[Detection] = []
        if self.detector is not None:
            detections = list(await self.detector.detect(frame))

            if not self._is_live(session):
                self._discard("目标检测")
                return

            # 暂停时检测框已清空，不再重新发布
            if not session.is_paused:
                self.detections = detections
                self._emit(ScanEventType.DETECTIONS, [d.to_dict() for d in detections])

        # 3. 人员过滤
        if self._has_person(detections):
            self.logger.log("scanner", "info", "画面中检测到人员，跳过分类")
            self.status.person_skips += 1
            self.outcome = None
            self._emit(ScanEventType.OUTCOME, None)
            return

        # 4. 分类
        image_data = frame.to_jpeg(self.image_quality)
        outcome = await self._classify(image_data, "image/jpeg")

        # 5. 会话已关闭则丢弃
        if not self._is_live(session):
            self._discard("分类")
            return

        self.outcome = outcome
        if outcome.is_success:
            self._record_success(outcome.category, image_data, "image/jpeg")
        else:
            self.status.failures += 1
            self.status.last_error = outcome.message

        self._emit(ScanEventType.OUTCOME, outcome.to_dict())

    def _has_person(self, detections: List[Detection]) -> bool:
        labels = {PERSON_LABEL, *(label.lower() for label in self.config.person_labels)}
        return any(d.label.lower() in labels for d in detections)

    def _discard(self, stage: str):
        self.status.discarded_results += 1
        self.logger.log("scanner", "info", f"会话已关闭，丢弃{stage}结果")

    async def _classify(self, image_data: bytes, mime_type: str) -> ClassificationOutcome:
        """调用分类器（带超时），把所有失败转换为 ClassificationOutcome"""
        try:
            result = await asyncio.wait_for(
                self.classifier.classify(image_data, mime_type),
                timeout=self.config.classify_timeout
            )
        except asyncio.TimeoutError:
            self.logger.log("scanner", "error", f"分类超时 ({self.config.classify_timeout}s)")
            return ClassificationOutcome.failure(FailureReason.NETWORK_ERROR)
        except ClassificationError as e:
            self.logger.log("scanner", "warning", f"分类失败: {e.reason.value} - {e.message}")
            return ClassificationOutcome.failure(e.reason, e.message)
        except Exception as e:
            self.logger.log("scanner", "error", f"分类异常: {e}")
            return ClassificationOutcome.failure(FailureReason.INVALID_RESPONSE)

        category = WasteCategory.parse(result)
        if category is None:
            self.logger.log("scanner", "error", f"分类器返回未知结果: {result!r}")
            return ClassificationOutcome.failure(FailureReason.INVALID_RESPONSE)

        return ClassificationOutcome.success(category)

    def _record_success(self, category: WasteCategory, image_data: bytes, mime_type: str):
        """记录成功的分类：写入历史并发出提示"""
        self.status.classifications += 1
        self.status.last_detected_at = datetime.now()

        entry = HistoryEntry(image_data=to_data_url(image_data, mime_type), category=category)
        if self.history.append(entry):
            self._emit(ScanEventType.HISTORY_CHANGED, len(self.history.load()))

        self._emit(ScanEventType.DETECTED, category.value)
        self.logger.log("scanner", "info", f"识别结果: {category.value}")

    # ==================== 单张图片分类 ====================

    async def classify_image(self, image_data: bytes, mime_type: str) -> ClassificationOutcome:
        """分类一张上传的图片（不经过人员过滤和定时调度）

        Raises:
            ValueError: 图片为空或不是图片类型
        """
        if not image_data:
            raise ValueError("图片数据为空")
        if not mime_type or not mime_type.startswith("image/"):
            raise ValueError(f"不支持的文件类型: {mime_type}")

        self.logger.log("scanner", "info", f"分类上传图片: {len(image_data)} 字节")

        outcome = await self._classify(image_data, mime_type)
        if outcome.is_success:
            self._record_success(outcome.category, image_data, mime_type)
        else:
            self.status.failures += 1

        return outcome

    # ==================== 历史记录 ====================

    def get_history(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.history.load()]

    def clear_history(self) -> bool:
        cleared = self.history.clear()
        if cleared:
            self._emit(ScanEventType.HISTORY_CHANGED, 0)
        return cleared

    # ==================== 状态查询 ====================

    def just_detected(self) -> bool:
        """最近是否刚识别成功（用于短暂提示）"""
        last = self.status.last_detected_at
        if last is None:
            return False
        return (datetime.now() - last).total_seconds() < self.config.detected_flash_seconds

    def get_status(self) -> Dict[str, Any]:
        """获取控制器状态快照"""
        session = self._session
        return {
            "state": self.state.value,
            "is_open": session is not None,
            "is_paused": session.is_paused if session else False,
            "is_busy": session.is_busy if session else False,
            "started_at": session.started_at.isoformat() if session else None,
            "scan_interval": self.config.scan_interval,
            "detections": [d.to_dict() for d in self.detections],
            "outcome": self.outcome.to_dict() if self.outcome else None,
            "just_detected": self.just_detected(),
            "cycles_completed": self.status.cycles_completed,
            "person_skips": self.status.person_skips,
            "classifications": self.status.classifications,
            "failures": self.status.failures,
            "discarded_results": self.status.discarded_results,
            "last_error": self.status.last_error,
            "history_size": len(self.history.load()),
            "config": self.config.to_dict()
        }

    def shutdown(self):
        """关闭控制器"""
        self.logger.log("scanner", "info", "关闭 ScanController")

        if self._session is not None:
            self.stop()

        if self._cycle_in_flight():
            self._cycle_task.cancel()

        self.logger.log("scanner", "info", "ScanController 已关闭")


# ==================== 工厂函数 ====================

def create_scan_controller(frame_source,
                           classifier,
                           history_store: HistoryStore,
                           detector=None,
                           config_file: str = "config/scan_config.json",
                           image_quality: int = 85) -> ScanController:
    """创建扫描控制器

    Args:
        frame_source: 帧源
        classifier: 分类器
        history_store: 历史存储
        detector: 目标检测器（可选）
        config_file: 配置文件路径
        image_quality: JPEG 质量

    Returns:
        ScanController 实例
    """
    # 加载配置（如果文件不存在会创建默认配置）
    config = ScanConfig.load(config_file)

    return ScanController(
        frame_source=frame_source,
        classifier=classifier,
        history_store=history_store,
        config=config,
        detector=detector,
        image_quality=image_quality
    )
