"""剪贴板处理器

使用 pyperclip 读写文件名列表。
"""

import pyperclip


class ClipboardHandler:
    """剪贴板处理器"""

    @staticmethod
    def copy_lines(lines: list[str]) -> None:
        """把多行文本复制到剪贴板

        Args:
            lines: 每行一个文件名
        """
        pyperclip.copy("\n".join(lines))

    @staticmethod
    def paste_lines() -> list[str]:
        """从剪贴板读取文件名（每行一个）

        Returns:
            去掉空行后的行列表
        """
        return [line for line in pyperclip.paste().splitlines() if line.strip()]

    @staticmethod
    def is_available() -> bool:
        """检查剪贴板是否可用"""
        try:
            pyperclip.paste()
            return True
        except pyperclip.PyperclipException:
            return False
