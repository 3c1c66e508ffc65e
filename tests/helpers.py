import http.client
import threading
from pathlib import Path
from tempfile import TemporaryDirectory

from PIL import Image, ImageDraw

from cardsite.app import StaticSiteApp
from cardsite.config import ServerConfig


def make_png(path, size=(300, 150), mode="RGB"):
    """Writes a small test picture: background plus a diagonal band."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    color = (200, 60, 40, 255) if mode == "RGBA" else (200, 60, 40)
    image = Image.new(mode, size, color)
    draw = ImageDraw.Draw(image)
    draw.line((0, 0, size[0], size[1]), fill=(20, 120, 220) if mode == "RGB" else (20, 120, 220, 128), width=3)
    image.save(path, format="PNG")
    return path


class ConverterTestEnv:
    """Isolated input/output folders for converter tests."""

    def __init__(self):
        self._tmp = TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.input_dir = self.root / "cards"
        self.output_dir = self.root / "output"
        self.input_dir.mkdir()
        self.output_dir.mkdir()

    def cleanup(self):
        self._tmp.cleanup()

    def add_png(self, name, size=(300, 150), mode="RGB", folder=None):
        return make_png((folder or self.input_dir) / name, size=size, mode=mode)

    def add_file(self, name, content=b"not an image", folder=None):
        path = (folder or self.input_dir) / name
        path.write_bytes(content)
        return path

    def output_names(self):
        return sorted(p.name for p in self.output_dir.iterdir())


class ServerTestEnv:
    """Document root with a few files, served on an ephemeral port in a thread."""

    def __init__(self):
        self._tmp = TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.docs = self.root / "docs"
        self.docs.mkdir()
        self.index_bytes = b"<!DOCTYPE html><html><body>cards</body></html>"
        (self.docs / "index.html").write_bytes(self.index_bytes)
        (self.docs / "style.css").write_text("body { margin: 0; }")
        (self.docs / "photo.jpg").write_bytes(b"\xff\xd8\xff fake jpeg")
        (self.docs / "blob.bin").write_bytes(b"\x00\x01\x02")
        (self.docs / "sub").mkdir()
        (self.docs / "sub" / "page.txt").write_text("nested")
        (self.root / "outside.txt").write_text("top secret")
        (self.root / "docs-private").mkdir()
        (self.root / "docs-private" / "secret.txt").write_text("sibling secret")

        self.app = StaticSiteApp(ServerConfig(host="127.0.0.1", port=0, document_root=self.docs))
        self._thread = None

    @property
    def port(self):
        return self.app.server_address[1]

    def start(self):
        self.app.bind()
        self._thread = threading.Thread(target=self.app.serve_forever, daemon=True)
        self._thread.start()

    def stop(self):
        if self._thread is not None:
            self.app.shutdown()
            self._thread.join(timeout=5)
            self._thread = None
        self.app.close()
        self._tmp.cleanup()

    def request(self, path, method="GET"):
        conn = http.client.HTTPConnection("127.0.0.1", self.port, timeout=5)
        try:
            conn.request(method, path)
            response = conn.getresponse()
            body = response.read()
            return response.status, dict(response.getheaders()), body
        finally:
            conn.close()
