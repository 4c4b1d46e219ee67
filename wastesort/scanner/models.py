"""
扫描控制器的数据模型
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from wastesort.ai.categories import WasteCategory, get_category_details
from wastesort.errors import FailureReason, FAILURE_MESSAGES


class ScanState(Enum):
    """扫描状态"""
    CLOSED = "closed"
    SCANNING = "scanning"
    PAUSED = "paused"


class ScanEventType(Enum):
    """推送给展示层的事件"""
    STATE_CHANGED = "state_changed"
    DETECTIONS = "detections"
    OUTCOME = "outcome"
    DETECTED = "detected"          # 分类成功的短暂提示
    CAMERA_ERROR = "camera_error"
    HISTORY_CHANGED = "history_changed"


@dataclass
class ScanEvent:
    """控制器事件"""
    type: ScanEventType
    payload: Any = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class ScanSession:
    """一次摄像头打开期间的会话

    is_busy 只在 is_open 时可能为 True
    """
    generation: int
    is_open: bool = True
    is_paused: bool = False
    is_busy: bool = False
    started_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class ClassificationOutcome:
    """单次分类结果：成功时有 category，失败时有 reason"""
    category: Optional[WasteCategory] = None
    reason: Optional[FailureReason] = None
    message: str = ""

    @property
    def is_success(self) -> bool:
        return self.category is not None

    @classmethod
    def success(cls, category: WasteCategory) -> 'ClassificationOutcome':
        return cls(category=category)

    @classmethod
    def failure(cls, reason: FailureReason, message: Optional[str] = None) -> 'ClassificationOutcome':
        return cls(reason=reason, message=message or FAILURE_MESSAGES[reason])

    def to_dict(self) -> Dict[str, Any]:
        if self.is_success:
            return {
                "success": True,
                "category": self.category.value,
                "details": get_category_details(self.category)
            }
        return {
            "success": False,
            "reason": self.reason.value,
            "message": self.message
        }


@dataclass
class ScanStatus:
    """扫描统计"""
    cycles_completed: int = 0
    person_skips: int = 0
    classifications: int = 0
    failures: int = 0
    discarded_results: int = 0
    last_error: Optional[str] = None
    last_detected_at: Optional[datetime] = None
