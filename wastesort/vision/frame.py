"""
帧数据结构
"""
import base64
from dataclasses import dataclass, field
from datetime import datetime

import cv2
import numpy as np


@dataclass
class Frame:
    """从摄像头读取的一帧（BGR 格式）"""
    image: np.ndarray
    captured_at: datetime = field(default_factory=datetime.now)

    @property
    def width(self) -> int:
        return int(self.image.shape[1]) if self.image.ndim >= 2 else 0

    @property
    def height(self) -> int:
        return int(self.image.shape[0]) if self.image.ndim >= 2 else 0

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def to_jpeg(self, quality: int = 85) -> bytes:
        """编码为 JPEG

        Raises:
            ValueError: 编码失败
        """
        ok, buffer = cv2.imencode(".jpg", self.image, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
        if not ok:
            raise ValueError("JPEG 编码失败")
        return buffer.tobytes()


def to_data_url(image_data: bytes, mime_type: str = "image/jpeg") -> str:
    """把图片数据转为 data URL（用于历史记录）"""
    return f"data:{mime_type};base64,{base64.b64encode(image_data).decode('utf-8')}"
