"""fnclean - 文件名清理工具

把文件名中的无效字符替换为空格，支持格式化选项、批量导出和打包归档。
"""

__version__ = "0.1.0"

from fnclean.charset import DEFAULT_INVALID_CHARS, PRESETS, CharacterSetStore
from fnclean.cleaner import clean_batch, clean_name, split_extension
from fnclean.models import FormattingOptions

__all__ = [
    "clean_name",
    "clean_batch",
    "split_extension",
    "CharacterSetStore",
    "FormattingOptions",
    "DEFAULT_INVALID_CHARS",
    "PRESETS",
]
