"""Serves the webhook trigger and the admission webhook."""

import argparse
import os
from typing import Any

from sanic import Request, Sanic
from sanic.response import BaseHTTPResponse
from sanic.worker.loader import AppLoader

from s2i_operator.app_config import logging
from s2i_operator.trigger_api.app import register_all_handlers
from s2i_operator.trigger_api.dependencies import DependencyManager


def create_app() -> Sanic:
    """Create the webhook server application."""
    dm = DependencyManager.from_env()
    app = register_all_handlers(Sanic(dm.config.app_name), dm)
    if "COVERAGE_RUN" in os.environ:
        app.config.TOUCHUP = False

    @app.middleware("response")
    async def add_request_id(request: Request, response: BaseHTTPResponse) -> None:
        response.headers["X-Request-ID"] = str(request.id)

    @app.main_process_start
    def setup_main_logging(_: Sanic) -> None:
        logging.configure_logging(dm.config.log_cfg)

    @app.before_server_start
    async def setup_worker_logging(_: Sanic) -> None:
        logging.configure_logging(dm.config.log_cfg)

    return app


def _parse_args() -> dict[str, Any]:
    parser = argparse.ArgumentParser(prog="S2i webhook server")
    # probes and the api server reach the pod ip, not the loopback address
    parser.add_argument("-H", "--host", default="0.0.0.0", help="Host to listen on")  # nosec B104
    parser.add_argument("-p", "--port", default=8443, type=int, help="Port to listen on")
    parser.add_argument("--cert", default=os.environ.get("TLS_CERT_FILE"), help="TLS certificate file")
    parser.add_argument("--key", default=os.environ.get("TLS_KEY_FILE"), help="TLS private key file")
    parser.add_argument("--debug", action="store_true", help="Enable Sanic debug mode")
    parser.add_argument("-d", "--dev", action="store_true", help="Enable Sanic development mode")
    parser.add_argument("--single-process", action="store_true", help="Serve from the main process only")
    return vars(parser.parse_args())


def main() -> None:
    """Start the server, with TLS when a certificate and key are given.

    The api server only calls admission webhooks over https.
    """
    args = _parse_args()
    cert, key = args.pop("cert"), args.pop("key")
    single_process = args.pop("single_process")
    if cert and key:
        args["ssl"] = {"cert": cert, "key": key}
    loader = AppLoader(factory=create_app)
    app = loader.load()
    app.prepare(**args)
    if single_process and os.name == "posix":
        Sanic.start_method = "fork"
        Sanic.serve(primary=app)
    else:
        Sanic.serve(primary=app, app_loader=loader)


if __name__ == "__main__":
    main()
