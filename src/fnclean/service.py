"""7z 归档服务

接收上传的文件，调用外部 7z 程序打包后返回归档。
"""

import logging
import re
import shutil
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Annotated, Optional

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from starlette.background import BackgroundTask

from fnclean.cleaner import split_extension
from fnclean.config import Config

logger = logging.getLogger(__name__)

DEFAULT_COMPRESSION = 9
MISSING_7Z_MESSAGE = "未找到 7z。请安装 7-Zip 并确保 `7z` 命令在 PATH 中。"
MAX_NAME_LENGTH = 255

# 路径分隔符、Windows 保留字符和控制字符
_RESERVED_RE = re.compile(r'[/\\:*?"<>|\x00-\x1f\x80-\x9f]')
_TRAILING_RE = re.compile(r"[. ]+$")
_WINDOWS_RESERVED_RE = re.compile(r"^(con|prn|aux|nul|com\d|lpt\d)(\..*)?$", re.IGNORECASE)


def parse_compression(value: Optional[str]) -> int:
    """解析压缩级别，限制在 0-9，无法解析时使用 9"""
    try:
        level = int(value) if value not in (None, "") else DEFAULT_COMPRESSION
    except (TypeError, ValueError):
        level = DEFAULT_COMPRESSION
    return max(0, min(9, level))


def safe_upload_name(filename: Optional[str]) -> str:
    """把上传的文件名转为可写入临时目录的名称

    保留客户端清理后的名称，只去掉路径部分、文件系统保留字符和控制字符。
    """
    name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1]
    name = _RESERVED_RE.sub("", name)
    name = _TRAILING_RE.sub("", name)
    if not name:
        return "file"
    if _WINDOWS_RESERVED_RE.match(name):
        name = f"file_{name}"
    return name[:MAX_NAME_LENGTH]


def unique_upload_name(name: str, taken: set[str]) -> str:
    """同名上传时追加序号，如 "a.txt" -> "a (1).txt"

    Args:
        name: 处理后的名称
        taken: 已使用的名称（不区分大小写比较）

    Returns:
        未被占用的名称
    """
    if name.lower() not in taken:
        return name
    base, extension = split_extension(name)
    counter = 1
    while f"{base} ({counter}){extension}".lower() in taken:
        counter += 1
    return f"{base} ({counter}){extension}"


def _cleanup(path: Path) -> None:
    shutil.rmtree(path, ignore_errors=True)


def create_app(config: Config | None = None) -> FastAPI:
    """创建归档服务应用

    Args:
        config: 配置（7z 程序路径等）

    Returns:
        FastAPI 应用
    """
    config = config or Config()
    app = FastAPI(title="fnclean archive server")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    @app.get("/", response_class=PlainTextResponse)
    def health() -> str:
        return "fnclean archive server running"

    @app.get("/check7z")
    def check_7z() -> JSONResponse:
        """检查服务器上 7z 是否可用"""
        try:
            proc = subprocess.run(
                [config.sevenzip_bin, "--help"],
                capture_output=True,
                text=True,
                timeout=30,
            )
        except FileNotFoundError:
            return JSONResponse({"ok": False, "error": MISSING_7Z_MESSAGE}, status_code=500)
        except (OSError, subprocess.TimeoutExpired) as e:
            return JSONResponse({"ok": False, "error": str(e)}, status_code=500)

        if proc.returncode == 0 or proc.stdout:
            return JSONResponse({"ok": True, "message": "7z 可用"})
        return JSONResponse(
            {"ok": False, "error": "未找到 7z 或执行出错"}, status_code=500
        )

    @app.post("/convert7z")
    def convert_7z(
        files: Annotated[Optional[list[UploadFile]], File(alias="files[]")] = None,
        compression: Annotated[Optional[str], Form()] = None,
    ):
        """把上传的文件打包为 .7z 并返回"""
        if not files:
            return JSONResponse({"error": "未收到任何文件"}, status_code=400)

        level = parse_compression(compression)
        work_dir = Path(tempfile.mkdtemp(prefix="convert7z-"))
        files_dir = work_dir / "files"
        files_dir.mkdir()

        try:
            names: list[str] = []
            taken: set[str] = set()
            for upload in files:
                name = unique_upload_name(safe_upload_name(upload.filename), taken)
                if name != upload.filename:
                    logger.debug(f"上传文件名调整: {upload.filename!r} -> {name!r}")
                taken.add(name.lower())
                with open(files_dir / name, "xb") as fh:
                    shutil.copyfileobj(upload.file, fh)
                names.append(name)

            output_name = f"cleaned_files_{int(time.time() * 1000)}.7z"
            output_path = work_dir / output_name

            proc = subprocess.run(
                [config.sevenzip_bin, "a", "-t7z", f"-mx={level}", str(output_path), "--", *names],
                cwd=files_dir,
                capture_output=True,
                text=True,
            )
            if proc.returncode != 0:
                raise RuntimeError(f"7z exited with code {proc.returncode}\n{proc.stderr}")

        except FileNotFoundError:
            logger.error("转换失败: 未找到 7z 程序")
            _cleanup(work_dir)
            return JSONResponse({"error": MISSING_7Z_MESSAGE}, status_code=500)
        except (OSError, RuntimeError) as e:
            logger.error(f"转换失败: {e}")
            _cleanup(work_dir)
            return JSONResponse({"error": str(e)}, status_code=500)

        logger.info(f"已创建 {output_name}: {len(names)} 个文件, 压缩级别 {level}")
        return FileResponse(
            output_path,
            media_type="application/octet-stream",
            filename=output_name,
            background=BackgroundTask(_cleanup, work_dir),
        )

    return app
