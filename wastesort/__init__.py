"""
Waste Sort - 垃圾分类助手

模块：
- ai: Gemini 垃圾分类 + YOLO 目标检测
- scanner: 实时扫描控制器
- storage: 分类历史存储
- vision: 摄像头帧源
- web: RESTful API
"""

__version__ = "0.1.0"
