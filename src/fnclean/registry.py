"""文件登记表

记录待处理文件及其清理状态。字符集合或选项变化时，
已清理的名称会被重新计算。
"""

import logging
import uuid
from collections.abc import Iterable
from pathlib import Path

from fnclean.charset import CharacterSetStore
from fnclean.cleaner import clean_name
from fnclean.config import Config
from fnclean.models import AddResult, FileEntry, RegistryStats, format_size

logger = logging.getLogger(__name__)


class FileRegistry:
    """文件登记表"""

    def __init__(self, store: CharacterSetStore, config: Config | None = None):
        """初始化登记表

        Args:
            store: 字符集合存储，变更时自动重新处理已清理的文件
            config: 配置（数量和大小限制）
        """
        self.store = store
        self.config = config or Config()
        self.entries: list[FileEntry] = []
        store.subscribe(self.reprocess)

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self.entries)

    def get(self, entry_id: str) -> FileEntry | None:
        """按 ID 查找"""
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def _limit_reached(self, size: int) -> bool:
        if len(self.entries) >= self.config.max_files:
            return True
        return (
            size <= self.config.max_file_size
            and self.total_size + size > self.config.max_total_size
        )

    def _clean(self, name: str) -> str:
        return clean_name(name, self.store.snapshot(), self.store.options)

    # ============ 登记 ============

    def add_file(
        self, name: str, size: int, source: Path | None = None
    ) -> tuple[FileEntry | None, str | None]:
        """登记单个文件

        Args:
            name: 原始文件名
            size: 文件大小（字节）
            source: 文件内容所在路径

        Returns:
            (登记项, 错误信息)。重复文件两者都为 None
        """
        if len(self.entries) >= self.config.max_files:
            return None, f"已达到 {self.config.max_files} 个文件的上限"

        if size > self.config.max_file_size:
            return None, f"{name}: 超过单文件上限 {format_size(self.config.max_file_size)}"

        if self.total_size + size > self.config.max_total_size:
            return None, f"已达到总大小上限 {format_size(self.config.max_total_size)}"

        # 同名同大小视为重复
        if any(e.original_name == name and e.size == size for e in self.entries):
            logger.debug(f"跳过重复文件: {name}")
            return None, None

        entry = FileEntry(
            id=uuid.uuid4().hex[:12],
            original_name=name,
            size=size,
            source=source,
        )
        self.entries.append(entry)
        return entry, None

    def add_paths(self, paths: Iterable[Path]) -> AddResult:
        """批量登记磁盘上的文件

        超出数量或总大小上限后停止登记，剩余文件计为跳过。

        Args:
            paths: 文件路径列表

        Returns:
            登记结果
        """
        paths = list(paths)
        result = AddResult()

        for i, path in enumerate(paths):
            path = Path(path)
            try:
                size = path.stat().st_size
            except OSError as e:
                result.errors.append(f"{path.name}: {e}")
                result.skipped += 1
                continue

            if not path.is_file():
                result.errors.append(f"{path.name}: 不是文件")
                result.skipped += 1
                continue

            entry, error = self.add_file(path.name, size, path)
            if error and self._limit_reached(size):
                # 数量或总大小上限对后续文件同样成立
                result.errors.append(error)
                result.skipped += len(paths) - i
                break

            if entry:
                result.added += 1
            else:
                result.skipped += 1
                if error:
                    result.errors.append(error)

        logger.info(f"登记完成: {result.added} 个新增, {result.skipped} 个跳过")
        return result

    # ============ 清理 ============

    def clean_file(self, entry_id: str) -> FileEntry | None:
        """清理单个文件名

        Returns:
            清理后的登记项，ID 不存在时返回 None
        """
        entry = self.get(entry_id)
        if entry is None:
            logger.error(f"文件不存在: {entry_id}")
            return None
        entry.cleaned_name = self._clean(entry.original_name)
        entry.cleaned = True
        return entry

    def clean_all(self) -> int:
        """清理所有尚未清理的文件

        Returns:
            本次清理的文件数量
        """
        count = 0
        for entry in self.entries:
            if not entry.cleaned:
                entry.cleaned_name = self._clean(entry.original_name)
                entry.cleaned = True
                count += 1
        return count

    def reprocess(self) -> int:
        """用当前字符集合和选项重新计算所有已清理的名称

        Returns:
            重新计算的文件数量
        """
        count = 0
        for entry in self.entries:
            if entry.cleaned:
                entry.cleaned_name = self._clean(entry.original_name)
                count += 1
        if count:
            logger.debug(f"重新处理 {count} 个已清理文件")
        return count

    # ============ 查询与删除 ============

    def cleaned_entries(self) -> list[FileEntry]:
        """已清理的文件"""
        return [entry for entry in self.entries if entry.cleaned]

    def remove(self, entry_id: str) -> bool:
        """移除单个文件

        Returns:
            是否找到并移除
        """
        entry = self.get(entry_id)
        if entry is None:
            return False
        self.entries.remove(entry)
        return True

    def clear(self) -> int:
        """移除全部文件

        Returns:
            移除的数量
        """
        count = len(self.entries)
        self.entries = []
        return count

    def stats(self) -> RegistryStats:
        """统计信息"""
        cleaned = len(self.cleaned_entries())
        return RegistryStats(
            total=len(self.entries),
            cleaned=cleaned,
            pending=len(self.entries) - cleaned,
            total_size=self.total_size,
        )
