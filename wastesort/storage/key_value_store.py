"""
键值存储服务

职责：
1. 按 key 读写一条文本记录
2. 每次写入在单个事务内完成（要么全部生效，要么保持原值）

存储方式：SQLite 数据库
"""
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from wastesort.common import Logger
from wastesort.errors import PersistenceError


class KeyValueStore:
    """SQLite 键值存储

    设计原则：
    - 简洁：只实现 get / set / delete
    - 轻量：使用 SQLite，无需额外服务
    - 线程安全：使用锁保护数据库连接
    """

    def __init__(self, db_path: str = "data/history.db", log_dir: str = "logs"):
        """
        Args:
            db_path: 数据库文件路径
            log_dir: 日志目录
        """
        self.db_path = str(db_path)
        self.logger = Logger(log_dir)

        # 线程安全锁
        self._lock = threading.Lock()

        # 确保数据目录存在
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        # 初始化数据库
        self._init_database()

        self.logger.log("storage", "info", f"KeyValueStore 初始化 - 数据库: {self.db_path}")

    def _init_database(self):
        """初始化数据库表"""
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)
                conn.commit()
        except sqlite3.Error as e:
            self.logger.log("storage", "error", f"初始化数据库失败: {e}")

    def get(self, key: str) -> Optional[str]:
        """读取记录

        Raises:
            PersistenceError: 数据库不可用
        """
        try:
            with self._lock:
                with sqlite3.connect(self.db_path) as conn:
                    row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"读取 {key} 失败: {e}") from e

        return row[0] if row else None

    def set(self, key: str, value: str):
        """写入记录（覆盖）

        Raises:
            PersistenceError: 写入失败，原值保持不变
        """
        try:
            with self._lock:
                with sqlite3.connect(self.db_path) as conn:
                    conn.execute("""
                        INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                        ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """, (key, value, datetime.now().isoformat()))
                    conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"写入 {key} 失败: {e}") from e

    def delete(self, key: str):
        """删除记录

        Raises:
            PersistenceError: 删除失败
        """
        try:
            with self._lock:
                with sqlite3.connect(self.db_path) as conn:
                    conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                    conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"删除 {key} 失败: {e}") from e
