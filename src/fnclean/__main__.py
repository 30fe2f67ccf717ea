"""python -m fnclean 入口"""

import io
import sys

from fnclean.cli import app


def setup_utf8_output() -> None:
    """Windows 控制台下把 stdout/stderr 包装为 UTF-8

    无效字符列表里有大量符号，老版控制台编码无法显示。
    """
    if sys.platform != "win32":
        return
    for name in ("stdout", "stderr"):
        stream = getattr(sys, name)
        if hasattr(stream, "buffer"):
            setattr(
                sys,
                name,
                io.TextIOWrapper(
                    stream.buffer, encoding="utf-8", errors="replace", line_buffering=True
                ),
            )


def main() -> None:
    setup_utf8_output()
    app(prog_name="fnclean")


if __name__ == "__main__":
    main()
