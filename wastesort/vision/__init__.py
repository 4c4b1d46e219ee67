"""
Vision 模块 - 帧源与检测数据

包含：
- CameraSource: 摄像头帧源（硬件层）
- CameraSourceConfig: 帧源配置对象（配置层）
- Frame: 单帧图像
- Detection: 目标检测结果

分层架构：
┌─────────────────────────────────────┐
│     ScanController (业务层)         │  ← 定时扫描、人员过滤、分类
├─────────────────────────────────────┤
│     CameraSourceConfig (配置层)     │  ← 显式依赖注入
│     - camera_index                  │
│     - resolution                    │
├─────────────────────────────────────┤
│     CameraSource (硬件层)           │  ← 只管理摄像头硬件
│     - open()                        │
│     - current_frame()               │
│     - close()                       │
└─────────────────────────────────────┘
"""

from .frame import Frame, to_data_url
from .detection import Detection
from .camera_source import CameraSource, CameraSourceConfig

__all__ = [
    # 数据
    'Frame',
    'Detection',
    'to_data_url',

    # 配置层
    'CameraSourceConfig',

    # 硬件层
    'CameraSource',
]
