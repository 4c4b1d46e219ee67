"""
错误类型定义

三类错误：
- CameraAccessError：摄像头无法打开，会话直接回到关闭状态
- ClassificationError：单次分类失败，会话继续运行
- PersistenceError：历史记录读写失败，只记录日志
"""
from enum import Enum
from typing import Optional


class CameraErrorKind(Enum):
    """摄像头错误类型"""
    NOT_SUPPORTED = "not_supported"
    PERMISSION_DENIED = "permission_denied"
    DEVICE_ERROR = "device_error"


class FailureReason(Enum):
    """分类失败原因"""
    SAFETY_REJECTED = "safety_rejected"
    INVALID_RESPONSE = "invalid_response"
    AUTH_ERROR = "auth_error"
    NETWORK_ERROR = "network_error"
    UNKNOWN_CATEGORY = "unknown_category"


CAMERA_MESSAGES = {
    CameraErrorKind.NOT_SUPPORTED: "Thiết bị không hỗ trợ camera.",
    CameraErrorKind.PERMISSION_DENIED: "Không có quyền truy cập camera. Vui lòng cấp quyền và thử lại.",
    CameraErrorKind.DEVICE_ERROR: "Không thể mở camera. Vui lòng kiểm tra thiết bị và thử lại.",
}

FAILURE_MESSAGES = {
    FailureReason.SAFETY_REJECTED: "Hình ảnh bị từ chối do vi phạm chính sách an toàn. Vui lòng thử ảnh khác.",
    FailureReason.INVALID_RESPONSE: "Không nhận được phản hồi hợp lệ từ mô hình. Vui lòng thử lại.",
    FailureReason.AUTH_ERROR: "Lỗi xác thực: API Key không hợp lệ. Vui lòng kiểm tra lại cấu hình.",
    FailureReason.NETWORK_ERROR: "Lỗi mạng: Không thể kết nối đến dịch vụ. Vui lòng kiểm tra kết nối internet của bạn.",
    FailureReason.UNKNOWN_CATEGORY: "Hệ thống trả về một loại không xác định. Vui lòng thử lại.",
}


class WasteSortError(Exception):
    """所有业务错误的基类"""


class CameraAccessError(WasteSortError):
    """摄像头访问失败"""

    def __init__(self, kind: CameraErrorKind, message: Optional[str] = None):
        self.kind = kind
        self.message = message or CAMERA_MESSAGES[kind]
        super().__init__(self.message)


class ClassificationError(WasteSortError):
    """分类失败"""

    def __init__(self, reason: FailureReason, message: Optional[str] = None):
        self.reason = reason
        self.message = message or FAILURE_MESSAGES[reason]
        super().__init__(self.message)


class PersistenceError(WasteSortError):
    """持久化存储失败"""
