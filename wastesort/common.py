"""
通用工具类
"""
import os
import json
from pathlib import Path
from datetime import datetime
from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional


def resolve_base_dir() -> Path:
    """项目根目录：优先使用 WASTESORT_HOME 环境变量，否则为当前工作目录

    .env、logs/、data/、config/ 都在该目录下
    """
    return Path(os.getenv("WASTESORT_HOME") or Path.cwd()).resolve()


# 项目根目录
BASE_DIR = resolve_base_dir()

# 加载 .env 文件
load_dotenv(BASE_DIR / ".env")


class Logger:
    """简单日志工具"""

    def __init__(self, log_dir):
        self.log_dir = Path(log_dir) if log_dir else None

    def log(self, module: str, level: str, message: str, **kwargs):
        """记录日志"""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        log_entry = {
            "timestamp": timestamp,
            "module": module,
            "level": level,
            "message": message,
            **kwargs
        }

        # 输出到控制台
        print(f"[{timestamp}] [{module}] {level}: {message}")

        # 输出到文件（可选）
        if self.log_dir:
            try:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                log_file = self.log_dir / f"{datetime.now().strftime('%Y%m%d')}.log"
                with open(log_file, "a", encoding="utf-8") as f:
                    f.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
            except OSError as e:
                print(f"写入日志失败: {e}")


@dataclass
class GeminiConfig:
    """Gemini Vision API 配置"""
    api_key: str
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    model: str = "gemini-2.5-flash"
    timeout: int = 30


@dataclass
class CameraConfig:
    """摄像头配置"""
    camera_index: int = 0
    resolution: tuple = (1280, 720)  # 目标分辨率
    quality: int = 85  # JPEG 质量


@dataclass
class DetectorConfig:
    """目标检测配置"""
    model_path: str = "yolov8n.pt"
    confidence: float = 0.4


@dataclass
class WebConfig:
    """Web 服务配置"""
    host: str = "0.0.0.0"
    port: int = 8080


def _parse_resolution(value: str) -> tuple:
    try:
        width, height = map(int, value.split(","))
        return (width, height)
    except ValueError:
        return (1280, 720)


class Config:
    """全局配置类"""

    def __init__(self, base_dir: Optional[Path] = None):
        # Gemini 配置
        self.gemini = GeminiConfig(
            api_key=os.getenv("GEMINI_API_KEY", ""),
            base_url=os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"),
            model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            timeout=int(os.getenv("GEMINI_TIMEOUT", "30"))
        )

        # 摄像头配置
        self.camera = CameraConfig(
            camera_index=int(os.getenv("CAMERA_INDEX", "0")),
            resolution=_parse_resolution(os.getenv("RESOLUTION", "1280,720")),
            quality=int(os.getenv("IMAGE_QUALITY", "85"))
        )

        # 检测器配置
        self.detector = DetectorConfig(
            model_path=os.getenv("YOLO_MODEL", "yolov8n.pt"),
            confidence=float(os.getenv("DETECTION_CONFIDENCE", "0.4"))
        )

        # Web 配置
        self.web = WebConfig(
            host=os.getenv("WEB_HOST", "0.0.0.0"),
            port=int(os.getenv("WEB_PORT", "8080"))
        )

        # 项目路径
        self.base_dir = Path(base_dir) if base_dir else BASE_DIR
        self.log_dir = self.base_dir / "logs"
        self.data_dir = self.base_dir / "data"
        self.db_path = self.data_dir / "history.db"
        self.scan_config_file = self.base_dir / "config" / "scan_config.json"
