"""归档历史

使用 SQLite 持久化存储最近创建的归档。
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from fnclean.config import DEFAULT_DB_PATH
from fnclean.models import ArchiveRecord

logger = logging.getLogger(__name__)

# 保留的历史条数
MAX_HISTORY_ITEMS = 10


class ArchiveHistory:
    """归档历史 - 最新的记录在前"""

    def __init__(self, db_path: Path | None = None, max_items: int = MAX_HISTORY_ITEMS):
        """初始化归档历史

        Args:
            db_path: 数据库文件路径，默认为 ~/.fnclean/fnclean.db
            max_items: 最多保留的记录数
        """
        self.db_path = db_path or DEFAULT_DB_PATH
        self.max_items = max_items
        self.conn: sqlite3.Connection | None = None
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(str(self.db_path))
            self._init_tables()
        except (OSError, sqlite3.Error) as e:
            logger.warning(f"无法打开归档历史数据库 {self.db_path}: {e}")
            self.close()

    @property
    def available(self) -> bool:
        """数据库是否可用"""
        return self.conn is not None

    def _init_tables(self) -> None:
        """创建数据库表"""
        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS archive_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                size INTEGER NOT NULL,
                files_count INTEGER NOT NULL,
                created TEXT NOT NULL,
                options TEXT,
                path TEXT
            )
        """)

        self.conn.commit()

    def record(self, archive: ArchiveRecord) -> bool:
        """记录一次归档，并裁剪超出上限的旧记录

        Args:
            archive: 归档记录

        Returns:
            是否记录成功（数据库不可用时为 False）
        """
        if self.conn is None:
            logger.warning(f"归档历史不可用，未记录: {archive.name}")
            return False
        cursor = self.conn.cursor()
        cursor.execute(
            """INSERT INTO archive_history
               (name, size, files_count, created, options, path)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                archive.name,
                archive.size,
                archive.files_count,
                archive.created.isoformat(),
                json.dumps(archive.options, ensure_ascii=False),
                str(archive.path) if archive.path else None,
            ),
        )

        # 只保留最近 max_items 条
        cursor.execute(
            """DELETE FROM archive_history WHERE id NOT IN (
                   SELECT id FROM archive_history ORDER BY id DESC LIMIT ?
               )""",
            (self.max_items,),
        )
        self.conn.commit()
        logger.info(f"记录归档: {archive.name} ({archive.files_count} 个文件)")
        return True

    def get_history(self, limit: int | None = None) -> list[ArchiveRecord]:
        """获取归档历史

        Args:
            limit: 返回记录数量限制，默认全部

        Returns:
            归档记录列表（最新在前）
        """
        if self.conn is None:
            return []
        cursor = self.conn.cursor()
        cursor.execute(
            """SELECT name, size, files_count, created, options, path
               FROM archive_history ORDER BY id DESC LIMIT ?""",
            (limit if limit is not None else self.max_items,),
        )

        records: list[ArchiveRecord] = []
        for name, size, files_count, created, options, path in cursor.fetchall():
            records.append(
                ArchiveRecord(
                    name=name,
                    size=size,
                    files_count=files_count,
                    created=datetime.fromisoformat(created),
                    options=json.loads(options) if options else {},
                    path=Path(path) if path else None,
                )
            )
        return records

    def clear(self) -> int:
        """清空历史

        Returns:
            删除的记录数量
        """
        if self.conn is None:
            return 0
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM archive_history")
        deleted = cursor.rowcount
        self.conn.commit()
        return deleted

    def close(self) -> None:
        """关闭数据库连接"""
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> "ArchiveHistory":
        return self

    def __exit__(self, *args) -> None:
        self.close()
