#!/usr/bin/env python3
"""
Visitor counter web service.

Routes:
  /            HTML page with the current count and last visit time
  /api/visit   count a visit from the caller, return the new record as JSON
  /api/count   current record as JSON (read-only)
  /health      liveness payload with the server time

Listens on 0.0.0.0:$PORT (default 8080). State is in memory only.
Behind a proxy, the caller IP comes from X-Forwarded-For or X-Real-IP.

Usage:
    visitor-counter
    PORT=9000 python -m counter.server
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import urlparse

from jinja2 import Environment

from counter.config import Config, ConfigError
from counter.render import make_environment, render_home
from counter.store import VisitorStore

log = logging.getLogger(__name__)

MAX_DRAIN_BYTES = 256 * 1024
DRAIN_CHUNK = 64 * 1024


def client_ip(headers, peer: str) -> str:
    """Resolve the caller: X-Forwarded-For, then X-Real-IP, then the socket peer."""
    for name in ("X-Forwarded-For", "X-Real-IP"):
        value = (headers.get(name) or "").strip()
        if value:
            return value
    return peer


class CounterServer(ThreadingHTTPServer):
    """One thread per request; every handler shares the same store."""

    daemon_threads = True

    def __init__(self, address: tuple[str, int], store: VisitorStore,
                 templates: Environment | None = None):
        self.store = store
        self.templates = templates or make_environment()
        super().__init__(address, CounterHandler)


class CounterHandler(BaseHTTPRequestHandler):
    server: CounterServer

    routes = {
        "/": "home",
        "/api/visit": "visit",
        "/api/count": "count",
        "/health": "health",
    }

    def _dispatch(self):
        self._drain_body()
        path = urlparse(self.path).path
        name = self.routes.get(path)
        if name is None:
            self.send_error(404)
            return
        getattr(self, f"handle_{name}")()

    do_GET = do_POST = do_PUT = do_PATCH = do_DELETE = do_HEAD = _dispatch

    def handle_home(self):
        html = render_home(self.server.templates, self.server.store.snapshot())
        self._send(html.encode(), "text/html")

    def handle_visit(self):
        peer = "%s:%d" % self.client_address[:2]
        ip = client_ip(self.headers, peer)
        log.info("Visit from %s", ip)
        record = self.server.store.record_visit(ip)
        self._send_json(record.to_dict())

    def handle_count(self):
        self._send_json(self.server.store.snapshot().to_dict())

    def handle_health(self):
        now = datetime.now().astimezone()
        self._send_json({"status": "healthy", "time": now.isoformat(timespec="seconds")})

    def _send_json(self, payload: dict[str, Any]):
        self._send(json.dumps(payload).encode(), "application/json")

    def _send(self, body: bytes, content_type: str):
        self.send_response(200)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def _drain_body(self):
        """Discard a small request body; larger ones are left unread."""
        try:
            remaining = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            return
        if remaining <= 0 or remaining > MAX_DRAIN_BYTES:
            return
        while remaining > 0:
            chunk = self.rfile.read(min(remaining, DRAIN_CHUNK))
            if not chunk:
                break
            remaining -= len(chunk)

    def log_message(self, fmt, *args):
        log.debug("%s %s", self.address_string(), fmt % args)


def create_server(config: Config, store: VisitorStore | None = None) -> CounterServer:
    """Bind the listening socket. Raises OSError if the port is unavailable."""
    return CounterServer((config.host, config.port), store or VisitorStore())


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = Config.from_env()
    except ConfigError as e:
        log.error("Invalid configuration: %s", e)
        sys.exit(1)

    log.info("Starting server on port %d", config.port)
    try:
        server = create_server(config, VisitorStore())
    except OSError:
        log.exception("Could not listen on %s:%d", config.host, config.port)
        sys.exit(1)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        log.info("Shutting down")
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
