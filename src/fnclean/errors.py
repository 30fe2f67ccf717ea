"""归档相关异常"""

# 表示缺少 7z 程序的关键字
_MISSING_MARKERS = ("7-zip", "未找到 7z", "7z 未找到", "7z not found", "non trouv")


class ArchiveError(Exception):
    """归档失败"""


class MissingArchiverError(ArchiveError):
    """服务器或本机缺少 7z 程序"""


def is_missing_archiver_message(message: str) -> bool:
    """判断错误信息是否指向缺失的 7z 程序"""
    lowered = message.lower()
    return any(marker in lowered for marker in _MISSING_MARKERS)
