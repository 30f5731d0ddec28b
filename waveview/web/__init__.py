"""Flask application factory for the waveview HTTP API.

Exposes the same render pipeline as the CLI to callers that cannot run a
local process: upload an audio file, render it with size/start/duration
parameters, then fetch the PNG. Each render runs synchronously in the request.
"""

import argparse
import logging
import tempfile
from pathlib import Path

from flask import Flask, jsonify


def create_app(work_dir: Path | None = None) -> Flask:
    app = Flask(__name__)
    app.config["WORK_DIR"] = work_dir or Path(tempfile.mkdtemp(prefix="waveview_"))
    app.config["MAX_CONTENT_LENGTH"] = 2 * 1024 * 1024 * 1024  # 2 GB

    from waveview.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({"error": "File too large"}), 413

    return app


def main() -> None:
    parser = argparse.ArgumentParser(prog="waveview-web", description="waveview HTTP API")
    parser.add_argument("--port", type=int, default=8321, help="Port to listen on")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    app = create_app()
    print(f"waveview API: http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=False)
