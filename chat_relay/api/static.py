"""静态文件解析与流式输出。"""

import os
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, Tuple
from urllib.parse import unquote

from chat_relay.domain.exceptions import Forbidden, InternalError, NotFound
from chat_relay.infrastructure.logging.logger import logger


STREAM_CHUNK_SIZE = 64 * 1024

CONTENT_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".ico": "image/x-icon",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type_for(path) -> str:
    return CONTENT_TYPES.get(Path(path).suffix.lower(), DEFAULT_CONTENT_TYPE)


def resolve_static_path(root, request_path: str) -> Path:
    """把 URL 路径映射到 root 下的文件。

    "/" 映射到 index.html，目录映射到其中的 index.html。
    解析后的绝对路径必须仍位于 root 之下，否则抛出 Forbidden；
    文件不存在时抛出 NotFound。
    """
    root_abs = os.path.abspath(root)
    decoded = unquote(request_path)
    relative = "index.html" if decoded == "/" else decoded.lstrip("/")
    absolute = os.path.normpath(os.path.join(root_abs, relative))
    if absolute != root_abs and not absolute.startswith(root_abs.rstrip(os.sep) + os.sep):
        raise Forbidden(code="PATH_ESCAPE", message="Forbidden")

    # isdir/isfile 对含 NUL 等非法字符的路径直接返回 False
    if os.path.isdir(absolute):
        absolute = os.path.join(absolute, "index.html")
    if not os.path.isfile(absolute):
        raise NotFound(code="NOT_FOUND", message="Not Found")
    return Path(absolute)


def open_static_file(root, request_path: str) -> Tuple[BinaryIO, str, int]:
    """解析并打开静态文件，返回 (文件对象, Content-Type, 文件大小)。

    调用方负责关闭文件对象。文件不存在抛出 NotFound，其他读取错误抛出 InternalError。
    """
    path = resolve_static_path(root, request_path)
    try:
        fh = open(path, "rb")
    except (FileNotFoundError, NotADirectoryError):
        raise NotFound(code="NOT_FOUND", message="Not Found")
    except OSError as e:
        logger.error(f"Static file error: {request_path}: {e}")
        raise InternalError(code="STATIC_IO_ERROR", message="Internal Server Error")
    try:
        size = os.fstat(fh.fileno()).st_size
    except OSError as e:
        fh.close()
        logger.error(f"Static file error: {request_path}: {e}")
        raise InternalError(code="STATIC_IO_ERROR", message="Internal Server Error")
    return fh, content_type_for(path), size


def iter_file(fh: BinaryIO, chunk_size: int = STREAM_CHUNK_SIZE) -> Iterator[bytes]:
    while True:
        chunk = fh.read(chunk_size)
        if not chunk:
            return
        yield chunk


def stream_file(fh: BinaryIO, write: Callable[[bytes], object]) -> int:
    """把文件逐块写出，返回写出的字节数；读写错误原样上抛。"""
    written = 0
    for chunk in iter_file(fh):
        write(chunk)
        written += len(chunk)
    return written
