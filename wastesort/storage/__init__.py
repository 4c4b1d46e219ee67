"""
Storage 模块 - 存储服务

当前功能：
- KeyValueStore：SQLite 键值存储
- HistoryStore：分类历史（最新在前，最多 5 条）

使用示例：
```python
from wastesort.storage import create_history_store, HistoryEntry

history = create_history_store(db_path="data/history.db")

history.append(HistoryEntry(image_data="data:image/jpeg;base64,...",
                            category=WasteCategory.PLASTIC))

for entry in history.load():
    print(f"{entry.timestamp}: {entry.category.value}")

history.clear()
```
"""

from .key_value_store import KeyValueStore
from .history_store import (
    HistoryEntry,
    HistoryStore,
    HISTORY_CAPACITY,
    create_history_store
)

__all__ = [
    'KeyValueStore',
    'HistoryEntry',
    'HistoryStore',
    'HISTORY_CAPACITY',
    'create_history_store',
]
