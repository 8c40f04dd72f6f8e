"""
Tests for the HTTP tile server
"""

import threading

import pytest
import requests

from osm_tiles.server import make_server
from osm_tiles.service import TileService


@pytest.fixture
def base_url(config, park_line_dataset, tmp_path):
    static_dir = tmp_path / "static"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<html>map</html>", encoding="utf-8")

    service = TileService(park_line_dataset, config, cache_dir=str(tmp_path / "cached"))
    server = make_server(service, host="127.0.0.1", port=0, static_dir=str(static_dir), config=config)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"

    server.shutdown()
    server.server_close()


def test_tile_response(base_url, config):
    response = requests.get(f"{base_url}/map/10/512/512", timeout=10)

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "image/png"
    assert response.headers["Cache-Control"] == f"max-age={config.server.cache_max_age}"
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert response.content.startswith(b"\x89PNG")
    assert int(response.headers["Content-Length"]) == len(response.content)


def test_png_suffix_is_accepted(base_url):
    plain = requests.get(f"{base_url}/map/10/512/512", timeout=10)
    suffixed = requests.get(f"{base_url}/map/10/512/512.png", timeout=10)
    assert suffixed.status_code == 200
    assert suffixed.content == plain.content


def test_head_tile_sends_headers_only(base_url, config):
    body = requests.get(f"{base_url}/map/10/512/512", timeout=10).content
    response = requests.head(f"{base_url}/map/10/512/512.png", timeout=10)

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "image/png"
    assert response.headers["Cache-Control"] == f"max-age={config.server.cache_max_age}"
    assert int(response.headers["Content-Length"]) == len(body)
    assert response.content == b""

    assert requests.head(f"{base_url}/map/300/0/0", timeout=10).status_code == 400
    assert requests.head(f"{base_url}/index.html", timeout=10).status_code == 200


@pytest.mark.parametrize("path", ["/map/300/0/0", "/map/-1/0/0", "/map/3/0/99999999999"])
def test_bad_tile_requests(base_url, path):
    assert requests.get(f"{base_url}{path}", timeout=10).status_code == 400


def test_static_files_and_unknown_paths(base_url):
    index = requests.get(f"{base_url}/index.html", timeout=10)
    assert index.status_code == 200
    assert "map" in index.text

    assert requests.get(f"{base_url}/map/10/x/1", timeout=10).status_code == 404


def test_unknown_paths_without_static_dir(config, park_line_dataset):
    service = TileService(park_line_dataset, config)
    server = make_server(service, host="127.0.0.1", port=0, config=config)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        host, port = server.server_address[:2]
        assert requests.get(f"http://{host}:{port}/index.html", timeout=10).status_code == 404
        assert requests.head(f"http://{host}:{port}/index.html", timeout=10).status_code == 404
        assert requests.head(f"http://{host}:{port}/map/10/512/512", timeout=10).status_code == 200
    finally:
        server.shutdown()
        server.server_close()
