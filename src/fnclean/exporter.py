"""文件导出器

把已清理的文件以新名称复制到目标目录，支持并发。
"""

import logging
import shutil
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path

from fnclean.models import CleanedPair, ExportResult, FileEntry
from fnclean.validator import ConflictValidator

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5


class FileExporter:
    """文件导出器"""

    def __init__(self):
        self.validator = ConflictValidator()

    def export_batch(
        self,
        entries: list[FileEntry],
        output_dir: Path,
        dry_run: bool = False,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> ExportResult:
        """批量导出文件

        Args:
            entries: 已清理的登记项
            output_dir: 导出目录（不存在时自动创建）
            dry_run: 是否只模拟执行
            concurrency: 并发复制数

        Returns:
            导出结果
        """
        output_dir = Path(output_dir).resolve()

        operations, conflicts = self.validator.get_valid_operations(entries, output_dir)

        if dry_run:
            return ExportResult(
                success_count=len(operations),
                failed_count=0,
                skipped_count=len(conflicts),
                conflicts=conflicts,
            )

        output_dir.mkdir(parents=True, exist_ok=True)

        workers = max(1, min(concurrency, len(operations) or 1))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(
                pool.map(lambda entry: self._export_single(entry, output_dir), operations)
            )

        failed_items = [(path, error) for path, error in outcomes if error]
        return ExportResult(
            success_count=len(outcomes) - len(failed_items),
            failed_count=len(failed_items),
            skipped_count=len(conflicts),
            conflicts=conflicts,
            failed_items=failed_items,
        )

    def _export_single(self, entry: FileEntry, output_dir: Path) -> tuple[Path, str]:
        """复制单个文件

        Args:
            entry: 登记项
            output_dir: 导出目录

        Returns:
            (目标路径, 错误信息)，成功时错误信息为空字符串
        """
        tgt = output_dir / entry.target_name

        if entry.source is None or not entry.source.exists():
            logger.warning(f"源文件不存在: {entry.source}")
            return tgt, f"源文件不存在: {entry.original_name}"

        try:
            shutil.copy2(entry.source, tgt)
        except OSError as e:
            logger.error(f"导出失败 {entry.source} -> {tgt}: {e}")
            return tgt, str(e)

        logger.info(f"导出: {entry.original_name} -> {tgt.name}")
        return tgt, ""


def default_list_name() -> str:
    """名称清单的默认文件名"""
    timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
    return f"noms_fichiers_nettoyes_{timestamp}.txt"


def write_name_list(pairs: list[CleanedPair], path: Path) -> Path:
    """把清理后的名称逐行写入文本文件

    Args:
        pairs: 清理结果
        path: 输出文件路径，为目录时使用默认文件名

    Returns:
        实际写入的文件路径
    """
    path = Path(path)
    if path.is_dir():
        path = path / default_list_name()
    text = "".join(f"{pair.cleaned}\n" for pair in pairs)
    path.write_text(text, encoding="utf-8")
    return path
