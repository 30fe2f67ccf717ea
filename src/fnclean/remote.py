"""远程 7z 归档客户端

把已清理的文件上传到归档服务，下载生成的 .7z 文件。
"""

import logging
import re
from contextlib import ExitStack
from datetime import datetime
from pathlib import Path

import requests

from fnclean.errors import ArchiveError, MissingArchiverError, is_missing_archiver_message
from fnclean.models import ArchiveRecord, FileEntry

logger = logging.getLogger(__name__)

_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')


class RemoteArchiver:
    """归档服务客户端"""

    def __init__(self, base_url: str, timeout: int = 300):
        """初始化客户端

        Args:
            base_url: 服务根地址，如 http://127.0.0.1:3000
            timeout: 请求超时（秒）
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def ping(self) -> bool:
        """检查服务根地址是否可达"""
        try:
            response = self.session.get(f"{self.base_url}/", timeout=10)
            return response.ok
        except requests.RequestException as e:
            logger.debug(f"服务不可达: {e}")
            return False

    def check(self) -> bool:
        """检查服务器上 7z 是否可用

        Raises:
            MissingArchiverError: 服务器报告缺少 7z
            ArchiveError: 服务不可用
        """
        try:
            response = self.session.get(f"{self.base_url}/check7z", timeout=30)
        except requests.RequestException as e:
            raise ArchiveError(f"无法连接归档服务: {e}") from e

        if not response.ok:
            self._raise_for_error(response)
        return bool(response.json().get("ok"))

    def convert(
        self,
        entries: list[FileEntry],
        output_dir: Path,
        compression: int = 9,
    ) -> ArchiveRecord:
        """上传文件并下载 .7z 归档

        Args:
            entries: 已清理的登记项（需要 source 路径）
            output_dir: 归档保存目录
            compression: 压缩级别 0-9

        Returns:
            归档记录

        Raises:
            MissingArchiverError: 服务器缺少 7z
            ArchiveError: 上传、转换或下载失败
        """
        if not entries:
            raise ArchiveError("没有已清理的文件可归档")

        endpoint = f"{self.base_url}/convert7z"
        try:
            with ExitStack() as stack:
                files = []
                for entry in entries:
                    if entry.source is None:
                        raise ArchiveError(f"缺少文件内容: {entry.original_name}")
                    fh = stack.enter_context(open(entry.source, "rb"))
                    files.append(
                        ("files[]", (entry.target_name, fh, "application/octet-stream"))
                    )
                response = self.session.post(
                    endpoint,
                    files=files,
                    data={"compression": str(compression)},
                    timeout=self.timeout,
                    stream=True,
                )
        except OSError as e:
            raise ArchiveError(f"读取文件失败: {e}") from e
        except requests.RequestException as e:
            raise ArchiveError(f"上传到归档服务失败: {e}") from e

        if not response.ok:
            self._raise_for_error(response)

        filename = self._filename_from(response.headers.get("Content-Disposition", ""))
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        archive_path = output_dir / filename

        with open(archive_path, "wb") as fh:
            for chunk in response.iter_content(chunk_size=1024 * 1024):
                if chunk:
                    fh.write(chunk)

        size = archive_path.stat().st_size
        logger.info(f"已下载服务器归档: {filename}")
        return ArchiveRecord(
            name=filename,
            size=size,
            files_count=len(entries),
            created=datetime.now(),
            options={"format": "7z", "server": endpoint, "compression": compression},
            path=archive_path,
        )

    @staticmethod
    def _filename_from(disposition: str) -> str:
        match = _FILENAME_RE.search(disposition)
        if match:
            return Path(match.group(1)).name
        return "archive.7z"

    @staticmethod
    def _raise_for_error(response: requests.Response) -> None:
        """把错误响应转换为异常"""
        try:
            message = response.json().get("error") or ""
        except ValueError:
            message = ""
        if not message:
            message = response.text or f"服务器错误 {response.status_code}"

        logger.error(f"服务器错误 {response.status_code}: {message}")
        if is_missing_archiver_message(message):
            raise MissingArchiverError(message)
        raise ArchiveError(message)
