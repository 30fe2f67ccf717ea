"""文件名清理器

把无效字符替换为空格，再按固定顺序应用格式化选项。
纯函数，不做任何 I/O。
"""

import re
from collections.abc import Iterable

from fnclean.models import CleanedPair, FormattingOptions

# 输入不是有效名称时的返回值
UNNAMED_FALLBACK = "fichier_sans_nom"
# 清理结果为空时的名称主体
EMPTY_FALLBACK = "fichier"

# 视为空白的字符（含 U+FEFF，不含 U+001C-U+001F 和 U+0085）
WHITESPACE = (
    "\t\n\v\f\r \u00a0\u1680"
    + "".join(chr(code) for code in range(0x2000, 0x200B))
    + "\u2028\u2029\u202f\u205f\u3000\ufeff"
)

_WHITESPACE_RE = re.compile(f"[{re.escape(WHITESPACE)}]+")


def split_extension(name: str) -> tuple[str, str]:
    """在最后一个 "." 处拆分主体与扩展名

    以 "." 开头的名称（如 ".gitignore"）或不含 "." 的名称不拆分。

    Args:
        name: 原始文件名

    Returns:
        (主体, 扩展名)，扩展名保留开头的 "."
    """
    dot = name.rfind(".")
    if dot <= 0:
        return name, ""
    return name[:dot], name[dot:]


def _translation_table(invalid_chars: Iterable[str]) -> dict[int, str]:
    # 多字符字符串不参与匹配
    return {ord(char): " " for char in invalid_chars if len(char) == 1}


def clean_name(
    original_name: str,
    invalid_chars: Iterable[str],
    options: FormattingOptions | None = None,
) -> str:
    """清理单个文件名

    Args:
        original_name: 原始文件名
        invalid_chars: 无效字符集合（单个字符）
        options: 格式化选项，默认不做额外格式化

    Returns:
        清理后的文件名，扩展名原样保留
    """
    if not original_name or not isinstance(original_name, str):
        return UNNAMED_FALLBACK

    options = options or FormattingOptions()
    base, extension = split_extension(original_name)

    base = base.translate(_translation_table(invalid_chars))
    base = _WHITESPACE_RE.sub(" ", base).strip(WHITESPACE)

    if options.use_underscores:
        base = _WHITESPACE_RE.sub("_", base)

    if options.to_lowercase:
        base = base.lower()

    # 前缀不参与清理和小写转换
    base = options.effective_prefix + base

    if not base.strip(WHITESPACE):
        base = EMPTY_FALLBACK

    return base + extension


def clean_batch(
    names: Iterable[str],
    invalid_chars: Iterable[str],
    options: FormattingOptions | None = None,
) -> list[CleanedPair]:
    """批量清理文件名

    每个名称先去掉首尾空白，空行被忽略。

    Args:
        names: 文件名列表（如粘贴文本的各行）
        invalid_chars: 无效字符集合
        options: 格式化选项

    Returns:
        (原名, 清理后名称) 列表
    """
    table_chars = frozenset(invalid_chars)
    pairs: list[CleanedPair] = []
    for name in names:
        name = name.strip(WHITESPACE)
        if not name:
            continue
        pairs.append(CleanedPair(original=name, cleaned=clean_name(name, table_chars, options)))
    return pairs


def clean_text(
    text: str,
    invalid_chars: Iterable[str],
    options: FormattingOptions | None = None,
) -> list[CleanedPair]:
    """清理多行文本中的每个文件名"""
    return clean_batch(text.splitlines(), invalid_chars, options)
