"""
分类历史存储

职责：
1. 追加分类结果（最新在前，最多保留 5 条）
2. 读取历史（损坏时视为空）
3. 清空历史

历史以 JSON 数组的形式保存在 KeyValueStore 的单个 key 下
"""
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from wastesort.ai.categories import WasteCategory
from wastesort.common import Logger
from wastesort.errors import PersistenceError
from .key_value_store import KeyValueStore

HISTORY_KEY = "classification_history"
HISTORY_CAPACITY = 5


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class HistoryEntry:
    """一条分类历史（创建后不可修改）"""
    image_data: str  # data URL
    category: WasteCategory
    timestamp: str = field(default_factory=_now_iso)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "image": self.image_data,
            "category": self.category.value,
            "timestamp": self.timestamp
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HistoryEntry':
        """从字典创建

        Raises:
            ValueError: 字段缺失或类别未知
        """
        if not isinstance(data, dict):
            raise ValueError(f"历史记录格式错误: {type(data).__name__}")

        category = WasteCategory.parse(data.get("category"))
        if category is None:
            raise ValueError(f"未知类别: {data.get('category')}")

        entry_id, image, timestamp = data.get("id"), data.get("image"), data.get("timestamp")
        if not all(isinstance(v, str) for v in (entry_id, image, timestamp)):
            raise ValueError("历史记录缺少 id / image / timestamp")

        # 校验时间格式
        datetime.fromisoformat(timestamp)

        return cls(image_data=image, category=category, timestamp=timestamp, id=entry_id)


class HistoryStore:
    """分类历史存储

    写入是同步的：append / clear 返回时要么已完全生效，要么保持原状态
    """

    def __init__(self, kv_store: KeyValueStore, key: str = HISTORY_KEY,
                 capacity: int = HISTORY_CAPACITY, log_dir: str = "logs"):
        """
        Args:
            kv_store: 键值存储
            key: 历史记录所在的 key
            capacity: 最大保留条数
            log_dir: 日志目录
        """
        self.kv_store = kv_store
        self.key = key
        self.capacity = capacity
        self.logger = Logger(log_dir)

    def load(self) -> List[HistoryEntry]:
        """读取历史（最新在前），不存在或损坏时返回空列表"""
        try:
            raw = self.kv_store.get(self.key)
        except PersistenceError as e:
            self.logger.log("storage", "error", f"读取历史失败: {e}")
            return []

        if raw is None:
            return []

        try:
            payload = json.loads(raw)
            if not isinstance(payload, list):
                raise ValueError(f"历史记录应为数组，实际为 {type(payload).__name__}")
            entries = [HistoryEntry.from_dict(item) for item in payload]
        except ValueError as e:
            self.logger.log("storage", "warning", f"历史记录已损坏，视为空: {e}")
            return []

        return entries[:self.capacity]

    def append(self, entry: HistoryEntry) -> bool:
        """追加一条记录（插入到最前，超出容量时淘汰最旧的）

        Returns:
            是否保存成功
        """
        entries = [entry] + [e for e in self.load() if e.id != entry.id]
        entries = entries[:self.capacity]

        if not self._write(entries):
            return False

        self.logger.log("storage", "info",
                       f"保存分类历史: {entry.category.value}, 共 {len(entries)} 条")
        return True

    def clear(self) -> bool:
        """清空历史

        Returns:
            是否清空成功
        """
        try:
            self.kv_store.delete(self.key)
        except PersistenceError as e:
            self.logger.log("storage", "error", f"清空历史失败: {e}")
            return False

        self.logger.log("storage", "info", "分类历史已清空")
        return True

    def _write(self, entries: List[HistoryEntry]) -> bool:
        try:
            self.kv_store.set(self.key, json.dumps([e.to_dict() for e in entries], ensure_ascii=False))
            return True
        except PersistenceError as e:
            self.logger.log("storage", "error", f"保存分类历史失败: {e}")
            return False

    def get_status(self) -> Dict[str, Any]:
        """获取存储状态"""
        return {
            "db_path": self.kv_store.db_path,
            "key": self.key,
            "capacity": self.capacity,
            "size": len(self.load())
        }


# ==================== 工厂函数 ====================

def create_history_store(db_path: str = "data/history.db",
                         log_dir: Optional[str] = "logs") -> HistoryStore:
    """创建历史存储

    Args:
        db_path: 数据库文件路径
        log_dir: 日志目录

    Returns:
        HistoryStore 实例
    """
    return HistoryStore(KeyValueStore(db_path, log_dir), log_dir=log_dir)
