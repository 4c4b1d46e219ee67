"""
AI 服务配置类
"""
from dataclasses import dataclass


@dataclass
class AIConfig:
    """AI 服务配置对象

    统一管理所有 AI 功能的配置
    """
    # Gemini API 配置
    api_key: str  # Gemini API Key
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"  # API 基础 URL

    # Vision 配置
    vision_model: str = "gemini-2.5-flash"  # Vision 分类模型

    # 超时配置
    timeout: int = 30  # API 请求超时（秒）

    # 目标检测配置
    detector_model: str = "yolov8n.pt"  # YOLO 权重文件
    detector_confidence: float = 0.4  # 最低置信度

    # 日志配置
    log_dir: str = "logs"

    # 高级配置
    max_retries: int = 2  # 网络错误最大尝试次数
    retry_delay: float = 1  # 重试延迟（秒）
