"""Allocator HTTP server (Flask).

Routes:
    GET /get/<device>  -> the device's address as plain text
    GET /all           -> JSON object of every device and its address

TLS with mandatory client certificates is set up by `serve`; requests
that reach these handlers are already authenticated.
"""

import logging
import sys

from flask import Flask, Response, jsonify
from werkzeug.routing import PathConverter

from .config import AllocatorConfig
from .errors import InvalidDevice, PoolExhausted, StorageError
from .service import Allocator
from .store import AddressStore
from .tls import build_server_context

logger = logging.getLogger("addr_alloc")


class DeviceConverter(PathConverter):
    """Everything after /get/, including leading or repeated slashes."""
    regex = ".+"
    part_isolating = False


def _text(body: str, status: int) -> Response:
    return Response(body, status=status, mimetype="text/plain")


def create_app(allocator: Allocator) -> Flask:
    app = Flask(__name__)
    app.config["ALLOCATOR"] = allocator
    # "/x" and "x" are distinct devices; never rewrite the path.
    app.url_map.merge_slashes = False
    app.url_map.converters["device"] = DeviceConverter

    @app.route("/get/<device:device>", methods=["GET"], merge_slashes=False)
    def get_address(device):
        """Return the address for a device, allocating it on first request."""
        return _text(allocator.resolve(device), 200)

    @app.route("/all", methods=["GET"])
    def get_all():
        """Expose every allocation."""
        return jsonify(allocator.list()), 200

    @app.errorhandler(PoolExhausted)
    def on_exhausted(e):
        return _text(str(e), 500)

    @app.errorhandler(StorageError)
    def on_storage_error(e):
        logger.error(f"Storage {e.operation} failed: {e.detail}")
        return _text(str(e), 500)

    @app.errorhandler(InvalidDevice)
    def on_invalid_device(e):
        return _text(f"Invalid device: {e}", 400)

    @app.errorhandler(404)
    def on_not_found(e):
        return _text("Not found.", 404)

    @app.errorhandler(405)
    def on_method_not_allowed(e):
        return _text("Method not allowed.", 405)

    return app


def open_allocator(config: AllocatorConfig) -> Allocator:
    """Open the store and recover the cursor.

    Any StorageError here is fatal to the process: the server must not
    start with a cursor it could not rebuild.
    """
    store = AddressStore(config.db_path)
    return Allocator(store, config.space())


def serve(config: AllocatorConfig) -> None:
    try:
        allocator = open_allocator(config)
    except StorageError as e:
        logger.error(f"Recovery failed, refusing to serve: {e} ({e.detail})")
        sys.exit(1)

    ssl_context = build_server_context(config.cert, config.key, config.ca_cert)
    app = create_app(allocator)
    logger.info(f"Serving {allocator.space.first}-{allocator.space.last} on {config.host}:{config.port}")
    app.run(host=config.host, port=config.port, ssl_context=ssl_context, threaded=True, debug=False)
