"""fnclean 数据模型

使用 Pydantic 实现 JSON 验证和序列化。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FormattingOptions(BaseModel):
    """格式化选项

    JSON 中使用 camelCase 键（useUnderscores 等），与持久化格式一致。
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    use_underscores: bool = False  # 空格替换为下划线
    to_lowercase: bool = False  # 转为小写
    use_prefix: bool = False  # 添加前缀
    prefix: str = "clean_"

    @property
    def effective_prefix(self) -> str:
        """实际生效的前缀（未启用或空白前缀时为空字符串）"""
        if self.use_prefix and self.prefix.strip():
            return self.prefix
        return ""


class FileEntry(BaseModel):
    """已登记的文件"""

    id: str
    original_name: str
    size: int
    source: Path | None = None  # 文件内容所在路径
    cleaned_name: str | None = None
    cleaned: bool = False
    added_at: datetime = Field(default_factory=datetime.now)

    @property
    def target_name(self) -> str:
        """导出时使用的文件名"""
        return self.cleaned_name or self.original_name

    @property
    def changed(self) -> bool:
        """清理后名称是否与原名不同"""
        return self.cleaned and self.cleaned_name != self.original_name


# ============ 结果模型 ============


@dataclass
class CleanedPair:
    """单个名称的清理结果"""

    original: str
    cleaned: str

    @property
    def changed(self) -> bool:
        return self.original != self.cleaned


@dataclass
class AddResult:
    """批量登记文件结果"""

    added: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class RegistryStats:
    """登记表统计"""

    total: int
    cleaned: int
    pending: int
    total_size: int


class ConflictType(str, Enum):
    """冲突类型"""

    TARGET_EXISTS = "target_exists"  # 目标路径已存在
    DUPLICATE_TARGET = "duplicate_target"  # 多个文件清理后同名


@dataclass
class Conflict:
    """导出冲突"""

    type: ConflictType
    entry_id: str
    tgt_path: Path
    message: str


@dataclass
class ExportResult:
    """批量导出结果"""

    success_count: int
    failed_count: int
    skipped_count: int
    conflicts: list[Conflict]
    failed_items: list[tuple[Path, str]] = field(default_factory=list)


@dataclass
class ArchiveRecord:
    """归档记录"""

    name: str
    size: int
    files_count: int
    created: datetime
    options: dict = field(default_factory=dict)
    path: Path | None = None


# ============ 工具函数 ============


def format_size(size: int) -> str:
    """格式化文件大小

    Args:
        size: 字节数

    Returns:
        如 "1.5 MB" 的可读字符串
    """
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    value = float(size)
    for unit in units:
        if value < 1024 or unit == units[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{size} B"


def count_changed(pairs: list[CleanedPair]) -> int:
    """计算名称发生变化的数量"""
    return sum(1 for pair in pairs if pair.changed)
