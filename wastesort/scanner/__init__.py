"""
Scanner 模块 - 实时扫描服务

架构：
┌─────────────────────────────────────────────────┐
│          ScanController (扫描控制器)            │
├─────────────────────────────────────────────────┤
│  状态机：closed → scanning ⇄ paused → closed     │
│  - start() / stop() / pause() / resume()        │
│  - set_interval()：1-10 秒，立即重新计时         │
├─────────────────────────────────────────────────┤
│  扫描周期（同一时间最多一个）                    │
│  截帧 → 目标检测 → 人员过滤 → 分类 → 历史        │
├─────────────────────────────────────────────────┤
│  ScanConfig (统一配置)                           │
│  - 自动保存/加载                                 │
└─────────────────────────────────────────────────┘

使用示例：
```python
from wastesort.scanner import create_scan_controller

controller = create_scan_controller(
    frame_source=camera,
    classifier=classifier,
    history_store=history,
    detector=detector,
    config_file="config/scan_config.json"
)

await controller.start()
controller.set_interval(2)
controller.pause()
controller.resume()
controller.stop()
```
"""

from .scan_config import (
    ScanConfig,
    clamp_interval,
    normalize_person_labels,
    MIN_SCAN_INTERVAL,
    MAX_SCAN_INTERVAL,
    PERSON_LABEL,
)
from .models import (
    ClassificationOutcome,
    ScanEvent,
    ScanEventType,
    ScanSession,
    ScanState,
    ScanStatus,
)
from .scan_controller import ScanController, create_scan_controller

__all__ = [
    'ScanConfig',
    'clamp_interval',
    'normalize_person_labels',
    'PERSON_LABEL',
    'MIN_SCAN_INTERVAL',
    'MAX_SCAN_INTERVAL',
    'ClassificationOutcome',
    'ScanEvent',
    'ScanEventType',
    'ScanSession',
    'ScanState',
    'ScanStatus',
    'ScanController',
    'create_scan_controller',
]
