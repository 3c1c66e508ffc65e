"""Обработчик HTTP-запросов: URL -> файл под корнем документов.

Путь проверяется до открытия файла; всё, что после `realpath` оказалось
вне корня (включая соседние каталоги с общим префиксом), получает 403.
"""
from __future__ import annotations

import errno
import html
import logging
import os
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

from cardsite.models.image_model import ServedFile

logger = logging.getLogger(__name__)

MIME_TYPES = {
    ".html": "text/html",
    ".js": "text/javascript",
    ".css": "text/css",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".txt": "text/plain",
}
DEFAULT_MIME_TYPE = "application/octet-stream"

NOT_FOUND_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <title>404 - Not Found</title>
</head>
<body>
  <h1>404 - Page Not Found</h1>
  <p>The requested file "{path}" was not found.</p>
</body>
</html>
"""


def content_type_for(path: str | Path) -> str:
    return MIME_TYPES.get(Path(path).suffix, DEFAULT_MIME_TYPE)


def request_pathname(raw_path: str) -> str:
    """Путь из URL без query-строки, с `/` -> `/index.html`."""
    pathname = unquote(urlsplit(raw_path).path) or "/"
    if pathname == "/":
        pathname = "/index.html"
    return pathname


def resolve_request_path(document_root: Path, pathname: str) -> Optional[Path]:
    """Разрешает путь запроса внутри корня документов.

    Returns:
        Реальный путь файла или `None`, если он выходит за пределы корня.
        Сравнение идёт по границе разделителя: `docs-private` не считается
        частью `docs`.
    """
    root = os.path.realpath(document_root)
    try:
        candidate = os.path.realpath(os.path.join(root, pathname.lstrip("/")))
    except ValueError:
        # embedded null byte
        return None
    if candidate != root and not candidate.startswith(root.rstrip(os.sep) + os.sep):
        return None
    return Path(candidate)


class StaticFileHandler(BaseHTTPRequestHandler):
    """Отдаёт файлы из `document_root`; любой метод обрабатывается как GET."""

    server_version = "cardsite"
    document_root: Path = Path("docs")

    def do_GET(self) -> None:
        self._serve(include_body=True)

    def do_HEAD(self) -> None:
        self._serve(include_body=False)

    # no method distinction
    do_POST = do_GET
    do_PUT = do_GET
    do_DELETE = do_GET
    do_PATCH = do_GET
    do_OPTIONS = do_GET

    def log_message(self, format: str, *args) -> None:
        logger.info("%s - %s", self.address_string(), format % args)

    # ---- Helpers ----
    def _serve(self, include_body: bool) -> None:
        pathname = request_pathname(self.path)
        fs_path = resolve_request_path(self.document_root, pathname)
        if fs_path is None:
            logger.warning("Запрос за пределы корня отклонён: %s", self.path)
            self._respond(HTTPStatus.FORBIDDEN, b"Forbidden", "text/plain", include_body)
            return

        try:
            served = self._read_file(pathname, fs_path)
        except OSError as exc:
            if exc.errno == errno.ENOENT:
                body = NOT_FOUND_TEMPLATE.format(path=html.escape(pathname)).encode("utf-8")
                self._respond(HTTPStatus.NOT_FOUND, body, "text/html", include_body)
            else:
                logger.error("Ошибка чтения %s: %s", fs_path, exc)
                self._respond(HTTPStatus.INTERNAL_SERVER_ERROR, b"Internal Server Error", "text/plain", include_body)
            return

        self._respond(HTTPStatus.OK, served.content, served.content_type, include_body)

    def _read_file(self, pathname: str, fs_path: Path) -> ServedFile:
        return ServedFile(
            request_path=pathname,
            fs_path=fs_path,
            content=fs_path.read_bytes(),
            content_type=content_type_for(pathname),
        )

    def _respond(self, status: HTTPStatus, body: bytes, content_type: str, include_body: bool) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if include_body:
            self.wfile.write(body)


def make_handler(document_root: Path) -> type:
    """Класс обработчика, привязанный к конкретному корню документов."""
    return type("BoundStaticFileHandler", (StaticFileHandler,), {"document_root": Path(document_root)})
