"""
目标检测器

基于 YOLOv8 的本地目标检测，用于在画面中有人时跳过分类
"""
import asyncio
from typing import List

from ultralytics import YOLO

from wastesort.common import Logger
from wastesort.vision import Detection, Frame


class ObjectDetector:
    """YOLOv8 目标检测器

    职责：
    1. 加载 YOLO 模型（只加载一次）
    2. 检测帧中的目标，返回 label + 边框
    """

    def __init__(self, model_path: str = "yolov8n.pt", confidence: float = 0.4,
                 log_dir: str = "logs"):
        """
        Args:
            model_path: YOLO 权重路径
            confidence: 最低置信度，低于该值的目标会被丢弃
            log_dir: 日志目录
        """
        self.logger = Logger(log_dir)
        self.confidence = confidence

        self.logger.log("detector", "info", f"加载 YOLO 模型: {model_path}")
        self.model = YOLO(model_path)
        self.logger.log("detector", "info", "YOLO 模型加载完成")

    async def detect(self, frame: Frame) -> List[Detection]:
        """检测目标（在工作线程中运行推理）

        Args:
            frame: 输入帧

        Returns:
            按模型输出顺序排列的检测结果
        """
        return await asyncio.to_thread(self.detect_sync, frame)

    def detect_sync(self, frame: Frame) -> List[Detection]:
        results = self.model(frame.image, verbose=False)
        return self._parse_results(results)

    def _parse_results(self, results) -> List[Detection]:
        """把 YOLO 输出转换为 Detection 列表"""
        detections = []

        for result in results:
            for box in result.boxes:
                class_id = int(box.cls[0])
                class_name = self.model.names[class_id]
                confidence = float(box.conf[0])

                if confidence < self.confidence:
                    continue

                x1, y1, x2, y2 = (int(v) for v in box.xyxy[0].tolist())
                detections.append(Detection(
                    label=class_name,
                    box=(x1, y1, x2 - x1, y2 - y1),
                    confidence=confidence
                ))

        return detections
