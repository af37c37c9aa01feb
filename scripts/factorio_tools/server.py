"""
Local HTTP server for running the calculator against freshly loaded data.

Files come from the calculator directory, except for the sprite sheet, the two
datasets and override.js, which are served from memory.
"""

import logging
import mimetypes
import posixpath
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Dict, Tuple, Union
from urllib.parse import urlsplit

from jinja2 import Environment, FileSystemLoader

from .pipeline import FactorioData
from .output import sprite_sheet_name


logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


def render_override(version: str) -> bytes:
    """Render override.js, which tells the calculator which local dataset to load."""
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        autoescape=False,
    )
    return env.get_template("override.js.j2").render(version=version).encode("utf-8")


def build_overrides(data: FactorioData) -> Dict[str, bytes]:
    """URL path -> content for everything served from memory."""
    return {
        "/images/" + sprite_sheet_name(data.sprite_hash): data.sprite_sheet,
        f"/data/local-{data.version}.json": data.normal.encode("utf-8"),
        f"/data/local-{data.version}-expensive.json": data.expensive.encode("utf-8"),
        "/override.js": render_override(data.version),
    }


class OverrideHandler(SimpleHTTPRequestHandler):
    """Static file handler that answers some paths from memory."""

    def __init__(self, *args, overrides: Dict[str, bytes], **kwargs):
        self.overrides = overrides
        super().__init__(*args, **kwargs)

    def _override(self):
        return self.overrides.get(urlsplit(self.path).path)

    def do_GET(self):
        content = self._override()
        if content is None:
            return super().do_GET()
        self._send_override_headers(content)
        self.wfile.write(content)

    def do_HEAD(self):
        content = self._override()
        if content is None:
            return super().do_HEAD()
        self._send_override_headers(content)

    def _send_override_headers(self, content: bytes) -> None:
        ctype, _ = mimetypes.guess_type(posixpath.basename(urlsplit(self.path).path))
        self.send_response(200)
        self.send_header("Content-Type", ctype or "application/octet-stream")
        self.send_header("Content-Length", str(len(content)))
        self.end_headers()

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)


def parse_addr(http_addr: str) -> Tuple[str, int]:
    host, _, port = http_addr.rpartition(":")
    return host, int(port)


def create_server(data: FactorioData, calc_dir: Union[str, Path],
                  http_addr: str = "localhost:8000") -> ThreadingHTTPServer:
    """Bind the server; the socket is listening before this returns."""
    handler = partial(OverrideHandler, overrides=build_overrides(data), directory=str(calc_dir))
    return ThreadingHTTPServer(parse_addr(http_addr), handler)

