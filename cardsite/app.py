import errno
import logging
from http.server import ThreadingHTTPServer

from cardsite.config import ServerConfig
from cardsite.web.static_handler import make_handler

logger = logging.getLogger(__name__)


class PortInUseError(OSError):
    pass


class StaticSiteApp:
    def __init__(self, config: ServerConfig) -> None:
        self.config = config
        self._httpd = None

    @property
    def server_address(self):
        return self._httpd.server_address if self._httpd is not None else None

    def bind(self) -> None:
        """Открывает сокет; занятый порт превращается в `PortInUseError`."""
        handler = make_handler(self.config.document_root.resolve())
        try:
            self._httpd = ThreadingHTTPServer((self.config.host, self.config.port), handler)
        except OSError as exc:
            if exc.errno == errno.EADDRINUSE:
                raise PortInUseError(exc.errno, f"Port {self.config.port} is already in use") from exc
            raise
        # non-daemon workers: server_close() joins requests still in flight
        self._httpd.daemon_threads = False
        self._httpd.block_on_close = True

    def serve_forever(self) -> None:
        if self._httpd is None:
            self.bind()
        host, port = self._httpd.server_address[:2]
        logger.info("Static web server is running on http://%s:%s", host, port)
        logger.info("Serving files from: %s", self.config.document_root.resolve())
        logger.info("Press Ctrl+C to stop the server")
        self._httpd.serve_forever()

    def shutdown(self) -> None:
        """Останавливает цикл обработки (из другого потока) и закрывает сокет."""
        if self._httpd is None:
            return
        self._httpd.shutdown()
        self.close()

    def close(self) -> None:
        if self._httpd is None:
            return
        self._httpd.server_close()
        self._httpd = None
        logger.info("Server closed.")
