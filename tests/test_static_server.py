import os
import socket
import threading
import time
import unittest
from pathlib import Path

from cardsite.app import PortInUseError, StaticSiteApp
from cardsite.config import ServerConfig
from cardsite.web.static_handler import content_type_for, request_pathname, resolve_request_path

from .helpers import ServerTestEnv


class StaticServerTests(unittest.TestCase):
    def setUp(self):
        self.env = ServerTestEnv()
        self.env.start()

    def tearDown(self):
        self.env.stop()

    def test_root_serves_index(self):
        status, headers, body = self.env.request("/")
        self.assertEqual(status, 200)
        self.assertEqual(headers["Content-Type"], "text/html")
        self.assertEqual(body, self.env.index_bytes)
        self.assertEqual(body, self.env.request("/index.html")[2])

    def test_content_type_from_extension_table(self):
        self.assertEqual(self.env.request("/style.css")[1]["Content-Type"], "text/css")
        self.assertEqual(self.env.request("/photo.jpg")[1]["Content-Type"], "image/jpg")
        status, headers, body = self.env.request("/blob.bin")
        self.assertEqual(headers["Content-Type"], "application/octet-stream")
        self.assertEqual(body, b"\x00\x01\x02")

    def test_nested_file_and_query_string(self):
        self.assertEqual(self.env.request("/sub/page.txt")[2], b"nested")
        status, _headers, body = self.env.request("/index.html?v=2")
        self.assertEqual((status, body), (200, self.env.index_bytes))

    def test_missing_file_is_404_page_naming_the_path(self):
        status, headers, body = self.env.request("/missing.html")
        self.assertEqual(status, 404)
        self.assertEqual(headers["Content-Type"], "text/html")
        self.assertIn(b'"/missing.html"', body)

    def test_directory_read_is_500(self):
        status, headers, body = self.env.request("/sub/")
        self.assertEqual(status, 500)
        self.assertEqual(headers["Content-Type"], "text/plain")
        self.assertEqual(body, b"Internal Server Error")

    def test_traversal_outside_root_is_forbidden(self):
        for path in ["/../../etc/passwd", "/../outside.txt", "/%2e%2e/outside.txt"]:
            with self.subTest(path=path):
                status, _headers, body = self.env.request(path)
                self.assertEqual(status, 403)
                self.assertNotIn(b"secret", body)

    def test_sibling_directory_sharing_root_prefix_is_forbidden(self):
        status, _headers, body = self.env.request("/../docs-private/secret.txt")
        self.assertEqual(status, 403)
        self.assertNotIn(b"secret", body)

    def test_symlink_escaping_root_is_forbidden(self):
        link = self.env.docs / "leak.txt"
        try:
            os.symlink(self.env.root / "outside.txt", link)
        except (OSError, NotImplementedError):
            self.skipTest("symlinks unavailable")
        self.assertEqual(self.env.request("/leak.txt")[0], 403)

    def test_head_sends_headers_only(self):
        status, headers, body = self.env.request("/", method="HEAD")
        self.assertEqual(status, 200)
        self.assertEqual(headers["Content-Length"], str(len(self.env.index_bytes)))
        self.assertEqual(body, b"")

    def test_other_methods_behave_like_get(self):
        status, _headers, body = self.env.request("/index.html", method="POST")
        self.assertEqual((status, body), (200, self.env.index_bytes))


class ServerLifecycleTests(unittest.TestCase):
    def test_port_in_use_raises(self):
        env = ServerTestEnv()
        try:
            env.app.bind()
            second = StaticSiteApp(ServerConfig(host="127.0.0.1", port=env.port, document_root=env.docs))
            with self.assertRaises(PortInUseError):
                second.bind()
        finally:
            env.stop()

    def test_shutdown_waits_for_request_in_flight(self):
        env = ServerTestEnv()
        env.start()
        baseline = threading.active_count()
        client = socket.create_connection(("127.0.0.1", env.port), timeout=5)
        try:
            # request line only; the handler blocks until the header block ends
            client.sendall(b"GET /index.html HTTP/1.0\r\n")
            deadline = time.monotonic() + 5
            while threading.active_count() <= baseline and time.monotonic() < deadline:
                time.sleep(0.01)

            closer = threading.Thread(target=env.app.shutdown)
            closer.start()
            closer.join(timeout=0.3)
            self.assertTrue(closer.is_alive())

            client.sendall(b"\r\n")
            response = b""
            while True:
                chunk = client.recv(4096)
                if not chunk:
                    break
                response += chunk

            closer.join(timeout=5)
            self.assertFalse(closer.is_alive())
            self.assertTrue(response.startswith(b"HTTP/1.0 200"))
            self.assertTrue(response.endswith(env.index_bytes))
        finally:
            client.close()
            env.stop()


class PathResolutionTests(unittest.TestCase):
    def test_request_pathname(self):
        self.assertEqual(request_pathname("/"), "/index.html")
        self.assertEqual(request_pathname("/a%20b.png?x=1"), "/a b.png")

    def test_resolve_request_path(self):
        root = Path(os.path.realpath(os.getcwd()))
        self.assertEqual(resolve_request_path(root, "/x/y.txt"), root / "x" / "y.txt")
        self.assertIsNone(resolve_request_path(root, "/../x"))

    def test_content_type_for(self):
        self.assertEqual(content_type_for("/a.svg"), "image/svg+xml")
        self.assertEqual(content_type_for("/a.HTML"), "application/octet-stream")


if __name__ == "__main__":
    unittest.main()
