"""
HTTP tile server

Serves GET /map/{z}/{x}/{y}[.png] from a TileService, one thread per
request. Other paths are served from an optional static directory.
"""

import os
import re
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional
from urllib.parse import urlsplit

from loguru import logger

from .config import TilesConfig, get_config
from .indexing.projection import INT32_MAX, INT32_MIN
from .service import TileService

TILE_ROUTE = re.compile(r"^/map/(-?\d+)/(-?\d+)/(-?\d+)(?:\.png)?/?$")


def make_handler(service: TileService, config: TilesConfig, static_dir: Optional[str] = None):
    """Build a request handler class bound to a service"""

    class TileRequestHandler(SimpleHTTPRequestHandler):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, directory=static_dir or os.getcwd(), **kwargs)

        def do_GET(self):
            self._dispatch(head=False)

        def do_HEAD(self):
            self._dispatch(head=True)

        def _dispatch(self, head: bool):
            match = TILE_ROUTE.match(urlsplit(self.path).path)
            if match:
                zoom, x, y = (int(group) for group in match.groups())
                self._serve_tile(zoom, x, y, head)
            elif not static_dir:
                self.send_error(HTTPStatus.NOT_FOUND, "Not found")
            elif head:
                super().do_HEAD()
            else:
                super().do_GET()

        def end_headers(self):
            self.send_header("Access-Control-Allow-Origin", "*")
            super().end_headers()

        def _serve_tile(self, zoom: int, x: int, y: int, head: bool = False):
            if not (INT32_MIN <= x <= INT32_MAX and INT32_MIN <= y <= INT32_MAX):
                self.send_error(HTTPStatus.BAD_REQUEST, "Tile coordinates out of range")
                return
            try:
                data = service.render_tile(zoom, x, y)
            except ValueError as e:
                self.send_error(HTTPStatus.BAD_REQUEST, str(e))
                return
            except Exception:
                logger.exception(f"Failed to render tile {zoom}/{x}/{y}")
                self.send_error(HTTPStatus.INTERNAL_SERVER_ERROR, "Tile rendering failed")
                return

            self.send_response(HTTPStatus.OK)
            self.send_header("Content-Type", "image/png")
            self.send_header("Content-Length", str(len(data)))
            self.send_header("Cache-Control", f"max-age={config.server.cache_max_age}")
            self.end_headers()
            if not head:
                self.wfile.write(data)

        def log_message(self, format, *args):
            logger.debug(f"{self.address_string()} - {format % args}")

    return TileRequestHandler


def make_server(
    service: TileService,
    host: Optional[str] = None,
    port: Optional[int] = None,
    static_dir: Optional[str] = None,
    config: Optional[TilesConfig] = None
) -> ThreadingHTTPServer:
    """
    Create (but do not start) a threaded tile server.

    Args:
        service: Service that renders tiles
        host: Bind address (default from config)
        port: Bind port, 0 for an ephemeral port (default from config)
        static_dir: Directory served for non-tile paths
        config: Configuration (default global config)
    """
    config = config or get_config()
    host = config.server.host if host is None else host
    port = config.server.port if port is None else port
    static_dir = static_dir or config.server.static_dir

    server = ThreadingHTTPServer((host, port), make_handler(service, config, static_dir))
    server.daemon_threads = True
    logger.info(f"Tile server bound to http://{server.server_address[0]}:{server.server_address[1]}/map/{{z}}/{{x}}/{{y}}")
    return server
