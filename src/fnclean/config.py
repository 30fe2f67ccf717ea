"""运行配置

从环境变量（及 .env 文件）加载。
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# 默认数据库路径
DEFAULT_DB_PATH = Path.home() / ".fnclean" / "fnclean.db"

GIB = 1024 * 1024 * 1024


@dataclass
class Config:
    """fnclean 配置"""

    db_path: Path = field(default_factory=lambda: DEFAULT_DB_PATH)
    max_files: int = 500
    max_file_size: int = 2 * GIB
    max_total_size: int = 10 * GIB
    sevenzip_bin: str = "7z"
    server_host: str = "127.0.0.1"
    server_port: int = 3000
    server_url: str = "http://127.0.0.1:3000"
    download_concurrency: int = 5

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Config":
        """从环境变量加载配置

        Args:
            env_file: .env 文件路径，默认查找当前目录

        Raises:
            ValueError: 数值型变量无法解析
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        def int_env(name: str, default: int) -> int:
            value = os.getenv(name)
            if value is None or value == "":
                return default
            try:
                return int(value)
            except ValueError:
                raise ValueError(f"环境变量 {name} 不是整数: {value!r}")

        defaults = cls()
        port = int_env("FNCLEAN_PORT", defaults.server_port)
        host = os.getenv("FNCLEAN_HOST", defaults.server_host)

        return cls(
            db_path=Path(os.getenv("FNCLEAN_DB_PATH", str(defaults.db_path))),
            max_files=int_env("FNCLEAN_MAX_FILES", defaults.max_files),
            max_file_size=int_env("FNCLEAN_MAX_FILE_SIZE", defaults.max_file_size),
            max_total_size=int_env("FNCLEAN_MAX_TOTAL_SIZE", defaults.max_total_size),
            sevenzip_bin=os.getenv("FNCLEAN_SEVENZIP", defaults.sevenzip_bin),
            server_host=host,
            server_port=port,
            server_url=os.getenv(
                "FNCLEAN_SERVER_URL", f"http://{host}:{port}"
            ).rstrip("/"),
            download_concurrency=int_env(
                "FNCLEAN_CONCURRENCY", defaults.download_concurrency
            ),
        )
