"""
AI 服务 - 统一的 AI 功能入口

职责：
1. 管理分类器和检测器
2. 共享配置
3. 提供统一的入口
"""
from typing import Optional

from wastesort.common import Logger
from .ai_config import AIConfig
from .waste_classifier import WasteClassifier


class AIService:
    """AI 服务（统一入口）

    - vision(): Gemini 垃圾分类器
    - detector(): YOLO 目标检测器（首次调用时加载模型）
    """

    def __init__(self, config: AIConfig):
        """
        Args:
            config: AI 配置对象
        """
        self.config = config
        self.logger = Logger(config.log_dir)

        # 延迟初始化
        self._classifier: Optional[WasteClassifier] = None
        self._detector = None

        self.logger.log("ai", "info", f"AIService 初始化 - provider: gemini, model: {config.vision_model}")

    def vision(self) -> WasteClassifier:
        """获取垃圾分类器"""
        if self._classifier is None:
            self._classifier = WasteClassifier(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                model=self.config.vision_model,
                timeout=self.config.timeout,
                max_retries=self.config.max_retries,
                retry_delay=self.config.retry_delay,
                log_dir=self.config.log_dir
            )

        return self._classifier

    def detector(self):
        """获取目标检测器

        Returns:
            ObjectDetector 实例
        """
        if self._detector is None:
            # ultralytics 导入较慢，只在需要时加载
            from .object_detector import ObjectDetector

            self._detector = ObjectDetector(
                model_path=self.config.detector_model,
                confidence=self.config.detector_confidence,
                log_dir=self.config.log_dir
            )

        return self._detector

    def get_status(self) -> dict:
        """获取服务状态"""
        return {
            "provider": "gemini",
            "vision_model": self.config.vision_model,
            "detector_model": self.config.detector_model,
            "vision_available": self._classifier is not None,
            "detector_loaded": self._detector is not None
        }


# ==================== 工厂函数 ====================

def create_ai_service(config: AIConfig) -> AIService:
    """创建 AI 服务

    Args:
        config: AI 配置对象

    Returns:
        AIService 实例
    """
    return AIService(config)
