"""设置持久化

使用 SQLite 键值表保存格式化选项和无效字符列表。
读写失败只记录日志，内存中的状态始终有效。
"""

import json
import logging
import sqlite3
from pathlib import Path

from pydantic import ValidationError

from fnclean.charset import CharacterSetStore
from fnclean.config import DEFAULT_DB_PATH
from fnclean.models import FormattingOptions

logger = logging.getLogger(__name__)

OPTIONS_KEY = "upload_options"
CHARS_KEY = "upload_chars"


class SettingsStorage:
    """设置存储 - 键值对保存在 SQLite 中"""

    def __init__(self, db_path: Path | None = None):
        """初始化设置存储

        Args:
            db_path: 数据库文件路径，默认为 ~/.fnclean/fnclean.db
        """
        self.db_path = db_path or DEFAULT_DB_PATH
        self.conn: sqlite3.Connection | None = None
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(str(self.db_path))
            self._init_tables()
        except (OSError, sqlite3.Error) as e:
            logger.warning(f"无法打开设置数据库 {self.db_path}: {e}")
            self.close()

    @property
    def available(self) -> bool:
        """数据库是否可用"""
        return self.conn is not None

    def _init_tables(self) -> None:
        """创建数据库表"""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        self.conn.commit()

    def get(self, key: str) -> str | None:
        """读取原始值，数据库不可用时返回 None"""
        if self.conn is None:
            return None
        row = self.conn.execute(
            "SELECT value FROM settings WHERE key = ?", (key,)
        ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        """写入原始值

        Raises:
            sqlite3.Error: 数据库不可用或写入失败
        """
        if self.conn is None:
            raise sqlite3.OperationalError(f"设置数据库不可用: {self.db_path}")
        self.conn.execute(
            "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
            (key, value),
        )
        self.conn.commit()

    def save(self, store: CharacterSetStore) -> bool:
        """保存选项和字符列表

        Args:
            store: 字符集合存储

        Returns:
            是否保存成功
        """
        if not self.available:
            return False
        try:
            self.set(OPTIONS_KEY, store.options.model_dump_json(by_alias=True))
            self.set(
                CHARS_KEY,
                json.dumps(store.sorted_chars(), ensure_ascii=False),
            )
        except sqlite3.Error as e:
            logger.error(f"保存设置失败: {e}")
            return False
        logger.debug("设置已保存")
        return True

    def restore(self, store: CharacterSetStore) -> bool:
        """恢复已保存的选项和字符列表

        已保存的选项覆盖到当前选项之上，缺失的字段保持原值。

        Args:
            store: 字符集合存储（会被修改）

        Returns:
            是否读取到并应用了已保存的数据
        """
        if not self.available:
            return False

        restored = False
        try:
            raw_options = self.get(OPTIONS_KEY)
            if raw_options:
                merged = store.options.model_dump(by_alias=True)
                merged.update(json.loads(raw_options))
                store.set_options(FormattingOptions.model_validate(merged))
                restored = True

            raw_chars = self.get(CHARS_KEY)
            if raw_chars:
                chars = json.loads(raw_chars)
                if not isinstance(chars, list):
                    raise ValueError(f"字符列表格式错误: {type(chars).__name__}")
                store.load(chars)
                restored = True
        except (sqlite3.Error, ValueError, TypeError, ValidationError) as e:
            logger.error(f"加载设置失败: {e}")
            return False

        if restored:
            logger.debug("设置已加载")
        return restored

    def close(self) -> None:
        """关闭数据库连接"""
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> "SettingsStorage":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def load_store(storage: SettingsStorage) -> CharacterSetStore:
    """创建字符集合存储并恢复已保存的设置"""
    store = CharacterSetStore()
    storage.restore(store)
    return store
