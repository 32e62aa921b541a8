"""Run the Paper Tracker server with the host, port and TLS files from the environment.

Usage:
    python -m paper_tracker.serve
"""
import uvicorn

from paper_tracker.core import config
from paper_tracker.core.logging_config import configure_logging


def build_server_options() -> dict:
    options = {
        "host": config.HOST,
        "port": config.PORT,
        "log_config": None,
    }
    if config.tls_enabled():
        options["ssl_certfile"] = config.TLS_CERT_PATH
        options["ssl_keyfile"] = config.TLS_KEY_PATH
    return options


def main() -> None:
    config.validate_runtime_config()
    configure_logging()
    uvicorn.run("paper_tracker.main:app", **build_server_options())


if __name__ == "__main__":
    main()
