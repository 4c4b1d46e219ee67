"""
垃圾分类类别

固定五类，不支持动态扩展
"""
from enum import Enum
from typing import Any, Dict, Optional


class WasteCategory(str, Enum):
    """垃圾类别（值即模型返回的字符串）"""
    PAPER = "Giấy Tái Chế"
    PLASTIC = "Nhựa Tái Chế"
    METAL = "Kim Loại Tái Chế"
    ORGANIC = "Rác Hữu Cơ"
    OTHER = "Rác Khác"

    @classmethod
    def parse(cls, value: Any) -> Optional['WasteCategory']:
        """把模型返回的文本解析为类别，无法识别时返回 None"""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None

        text = value.strip().strip('"\'“”').strip()
        for category in cls:
            if category.value == text:
                return category
        return None


CATEGORY_DETAILS: Dict[WasteCategory, Dict[str, str]] = {
    WasteCategory.ORGANIC: {
        "display_name": "Rác Hữu Cơ",
        "description": "ĐÂY LÀ RÁC HỮU CƠ. (Ví dụ: vỏ trái cây/rau, bã cà phê).",
        "instructions": "Bạn nên bỏ vào thùng rác hữu cơ (màu xanh lá). "
                        "(Lưu ý: Hạn chế bỏ thịt, xương, dầu mỡ nhiều).",
    },
    WasteCategory.PAPER: {
        "display_name": "Giấy Tái Chế",
        "description": "ĐÂY LÀ GIẤY TÁI CHẾ. (Ví dụ: giấy in, bìa carton sạch, bì thư).",
        "instructions": "Vui lòng đảm bảo giấy sạch, khô, không dính thức ăn và bỏ vào thùng tái chế. "
                        "(Lưu ý: KHÔNG bỏ giấy ướt/bẩn, ly giấy chống thấm).",
    },
    WasteCategory.PLASTIC: {
        "display_name": "Nhựa Tái Chế",
        "description": "ĐÂY LÀ NHỰA TÁI CHẾ. (Ví dụ: chai PET, hộp PP/HDPE, nắp nhựa).",
        "instructions": "Vui lòng tráng sơ qua cho sạch và bỏ vào thùng tái chế. "
                        "(Lưu ý: KHÔNG bỏ xốp EPS, đồ nhựa dính bẩn nhiều).",
    },
    WasteCategory.METAL: {
        "display_name": "Kim Loại Tái Chế",
        "description": "ĐÂY LÀ KIM LOẠI TÁI CHẾ. (Ví dụ: lon nhôm/sắt, giấy bạc sạch).",
        "instructions": "Vui lòng rửa sơ qua và bỏ vào thùng tái chế. "
                        "(Lưu ý: TUYỆT ĐỐI KHÔNG bỏ pin, bình ắc quy, vật sắc nhọn vào đây).",
    },
    WasteCategory.OTHER: {
        "display_name": "Rác Khác",
        "description": "ĐÂY LÀ RÁC KHÁC. (Ví dụ: xốp, gốm sứ, khẩu trang, đồ bẩn khó rửa).",
        "instructions": "Đây là rác không tái chế hoặc khó xử lý. "
                        "Vui lòng bỏ vào thùng rác còn lại (màu xám).",
    },
}


def get_category_details(category: WasteCategory) -> Dict[str, str]:
    """获取类别详情（附带类别值）"""
    return {"category": category.value, **CATEGORY_DETAILS[category]}
