"""ZIP 归档器

以不压缩（stored）方式把已清理的文件打包为 ZIP，并附带 README.txt。
"""

import logging
import time
import zipfile
from datetime import datetime
from pathlib import Path

from fnclean.errors import ArchiveError
from fnclean.models import ArchiveRecord, FileEntry, format_size
from fnclean.validator import ConflictValidator

logger = logging.getLogger(__name__)

README_NAME = "README.txt"


def archive_basename() -> str:
    """生成归档基础名 cleaned_files_<毫秒时间戳>"""
    return f"cleaned_files_{int(time.time() * 1000)}"


def generate_readme(entries: list[FileEntry], created: datetime | None = None) -> str:
    """生成归档说明

    Args:
        entries: 归档中的文件
        created: 创建时间

    Returns:
        README 文本
    """
    created = created or datetime.now()
    lines = [
        "已清理文件归档",
        "===============================",
        "",
        f"日期: {created.strftime('%Y-%m-%d %H:%M:%S')}",
        f"文件: {len(entries)}",
        "",
        "文件列表:",
        "-------------------",
        "",
    ]
    for i, entry in enumerate(entries, start=1):
        lines.append(f"{i}. {entry.target_name}")
        lines.append(f"   大小: {format_size(entry.size)}")
        if entry.original_name != entry.target_name:
            lines.append(f"   原名: {entry.original_name}")
        lines.append("")
    return "\n".join(lines)


class ZipArchiver:
    """ZIP 归档器"""

    def __init__(self):
        self.validator = ConflictValidator()

    def create(
        self,
        entries: list[FileEntry],
        output_dir: Path,
        name: str | None = None,
        include_readme: bool = True,
    ) -> ArchiveRecord:
        """创建 ZIP 归档

        清理后同名的文件只保留第一个。

        Args:
            entries: 已清理的登记项
            output_dir: 归档输出目录
            name: 归档文件名（不含扩展名），默认 cleaned_files_<时间戳>
            include_readme: 是否附带 README.txt

        Returns:
            归档记录

        Raises:
            ArchiveError: 没有可归档的文件或写入失败
        """
        if not entries:
            raise ArchiveError("没有已清理的文件可归档")

        operations, conflicts = self.validator.get_valid_operations(entries)
        for conflict in conflicts:
            logger.warning(conflict.message)

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        archive_path = output_dir / f"{name or archive_basename()}.zip"
        created = datetime.now()

        try:
            with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_STORED) as zf:
                for entry in operations:
                    if entry.source is None:
                        raise ArchiveError(f"缺少文件内容: {entry.original_name}")
                    zf.write(entry.source, arcname=entry.target_name)
                if include_readme:
                    zf.writestr(README_NAME, generate_readme(operations, created))
        except OSError as e:
            archive_path.unlink(missing_ok=True)
            raise ArchiveError(f"写入归档失败: {e}") from e
        except ArchiveError:
            archive_path.unlink(missing_ok=True)
            raise

        size = archive_path.stat().st_size
        logger.info(f"归档已创建: {archive_path.name} ({format_size(size)})")
        return ArchiveRecord(
            name=archive_path.name,
            size=size,
            files_count=len(operations),
            created=created,
            options={"format": "zip", "compression": "stored"},
            path=archive_path,
        )
