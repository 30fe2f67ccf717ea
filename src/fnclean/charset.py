"""无效字符集合管理

维护可编辑的无效字符集合和格式化选项，变更时通知订阅者。
"""

import logging
from collections.abc import Callable, Iterable

from fnclean.models import FormattingOptions

logger = logging.getLogger(__name__)

# 默认无效字符（初始状态，也是 reset 的目标）
DEFAULT_INVALID_CHARS: tuple[str, ...] = (
    # 表情和符号
    "☺", "☻", "♥", "♦", "♣", "♠", "•", "◘", "○", "◙", "♂", "♀", "♪", "♫", "☼",
    "►", "◄", "↕", "‼", "¶", "§", "▬", "↨", "↑", "↓", "→", "←", "∟", "↔", "▲", "▼",
    "★", "☆", "✰", "✦", "✧", "❄", "❆", "❖", "✿", "❀", "❁", "❤", "➤", "➥", "➦",
    # 文件系统保留字符
    "\\", "/", ":", "*", "?", '"', "<", ">", "|", "#", "²", "~", "`", "´",
    # 标点和符号（"." 属于扩展名，不在其中）
    ",", ";", "!", "(", ")", "[", "]", "{", "}", "@", "&", "$", "%", "^",
    "+", "=", "§", "°", "¨", "£", "€", "¥",
    # 控制字符
    "\t", "\n", "\r",
)

# 预设字符组
PRESETS: dict[str, str] = {
    "windows": '\\/:*?"<>|',
    "punctuation": ",;!?()[]{}@&$%^+=",
    "symbols": "☺☻♥♦♣♠•◘○◙♂♀♪♫☼►◄↕‼¶§▬↨↑↓→←∟↔▲▼★☆✰✦✧❄❆❖✿❀❁❤➤➥➦",
    "quotes": "'\"`´‘’“”«»",
    "currency": "$£€¥¢₩₽",
    "whitespace": "\t\n\r\v\f",
}

# 特殊字符的显示标签
_DISPLAY_LABELS = {
    " ": "[espace]",
    "\t": "[tab]",
    "\n": "[nl]",
    "\r": "[cr]",
}

Listener = Callable[[], None]


def display_char(char: str) -> str:
    """返回字符的可读标签（空白和控制字符使用占位标签）"""
    return _DISPLAY_LABELS.get(char, char)


def count_unique(text: str) -> int:
    """统计输入中不重复的字符数"""
    return len(set(text))


class CharacterSetStore:
    """无效字符集合与格式化选项的持有者

    每个实例独立，不使用全局状态。
    """

    def __init__(
        self,
        chars: Iterable[str] | None = None,
        options: FormattingOptions | None = None,
    ):
        """初始化

        Args:
            chars: 初始字符，默认为 DEFAULT_INVALID_CHARS
            options: 初始格式化选项
        """
        self._chars: set[str] = set(DEFAULT_INVALID_CHARS if chars is None else chars)
        self._options = options or FormattingOptions()
        self._listeners: list[Listener] = []

    # ============ 订阅 ============

    def subscribe(self, listener: Listener) -> None:
        """注册变更回调（集合或选项变化后调用）"""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        """取消注册变更回调"""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # ============ 字符集合 ============

    def add(self, chars: str) -> int:
        """添加字符串中的每个不重复字符

        Args:
            chars: 待添加的字符（重复字符只计一次）

        Returns:
            新增的字符数量
        """
        new_chars = set(chars) - self._chars
        if new_chars:
            self._chars |= new_chars
            logger.debug(f"新增 {len(new_chars)} 个无效字符")
            self._notify()
        return len(new_chars)

    def apply_preset(self, chars: str) -> int:
        """应用预设字符组，行为与 add 相同"""
        return self.add(chars)

    def apply_named_preset(self, name: str) -> int:
        """按名称应用预设

        Raises:
            KeyError: 预设不存在
        """
        return self.apply_preset(PRESETS[name])

    def remove(self, char: str) -> None:
        """移除单个字符，不存在时忽略"""
        if char in self._chars:
            self._chars.discard(char)
            self._notify()

    def reset(self) -> None:
        """恢复默认字符集合（调用方负责确认）"""
        self._chars = set(DEFAULT_INVALID_CHARS)
        logger.info("无效字符列表已重置")
        self._notify()

    def snapshot(self) -> frozenset[str]:
        """返回当前集合的不可变快照"""
        return frozenset(self._chars)

    def load(self, chars: Iterable[str]) -> None:
        """用持久化的字符列表替换当前集合

        非单字符的条目会被忽略。
        """
        loaded = set()
        for char in chars:
            if isinstance(char, str) and len(char) == 1:
                loaded.add(char)
            else:
                logger.warning(f"忽略无效条目: {char!r}")
        self._chars = loaded
        self._notify()

    def sorted_chars(self) -> list[str]:
        """按码位排序的字符列表（用于显示）"""
        return sorted(self._chars)

    def __len__(self) -> int:
        return len(self._chars)

    def __contains__(self, char: object) -> bool:
        return char in self._chars

    # ============ 格式化选项 ============

    @property
    def options(self) -> FormattingOptions:
        return self._options

    def set_options(self, options: FormattingOptions) -> None:
        """替换格式化选项"""
        if options != self._options:
            self._options = options
            self._notify()

    def update_options(self, **changes) -> FormattingOptions:
        """修改部分选项字段

        Args:
            **changes: 字段名到新值，如 use_underscores=True

        Returns:
            新的选项对象
        """
        self.set_options(self._options.model_copy(update=changes))
        return self._options
