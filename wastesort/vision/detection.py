"""
目标检测结果
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Detection:
    """单个检测目标

    box 为 (x, y, w, h)，左上角坐标加宽高
    """
    label: str
    box: Tuple[int, int, int, int]
    confidence: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        x, y, w, h = self.box
        return {
            "label": self.label,
            "confidence": self.confidence,
            "box": {"x": x, "y": y, "w": w, "h": h}
        }
