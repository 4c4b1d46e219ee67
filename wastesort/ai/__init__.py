"""
AI 模块 - 统一的 AI 功能入口

架构：
┌─────────────────────────────────────┐
│          AIService (统一入口)        │
├─────────────────────────────────────┤
│  vision() → WasteClassifier         │  ← Gemini 图像分类（远程）
│  detector() → ObjectDetector        │  ← YOLO 目标检测（本地）
├─────────────────────────────────────┤
│  AIConfig (配置层)                   │  ← API Key, 模型配置
└─────────────────────────────────────┘

使用示例：
```python
from wastesort.ai import create_ai_service, AIConfig

ai = create_ai_service(AIConfig(api_key="your_api_key"))

classifier = ai.vision()
category = await classifier.classify(jpeg_bytes, "image/jpeg")
print(category.value)  # "Nhựa Tái Chế"
```
"""

from .ai_config import AIConfig
from .ai_service import AIService, create_ai_service
from .categories import WasteCategory, CATEGORY_DETAILS, get_category_details
from .waste_classifier import WasteClassifier

__all__ = [
    # 配置
    'AIConfig',

    # 服务
    'AIService',
    'create_ai_service',

    # 类别
    'WasteCategory',
    'CATEGORY_DETAILS',
    'get_category_details',

    # 分类器
    'WasteClassifier',
]
