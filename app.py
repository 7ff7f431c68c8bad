from __future__ import annotations

import argparse
import asyncio
import sys

import uvicorn

from librarydesk.core.config import ConfigFsPaths, ConfigManager
from librarydesk.core.errors import ConfigError
from librarydesk.core.logger import setup_logging
from librarydesk.core.services import build_services
from librarydesk.web.api import create_app


def main() -> None:
    ap = argparse.ArgumentParser(description="LibraryDesk admin view host")
    ap.add_argument("--root", default=".", help="Directory holding config/, logs/ and runtime/.")
    ap.add_argument("--host", default=None, help="Override web.json bind_host.")
    ap.add_argument("--port", type=int, default=None, help="Override web.json port.")
    ap.add_argument("--check-config", action="store_true", help="Load and validate config, then exit.")
    args = ap.parse_args()

    fs = ConfigFsPaths(args.root)
    bootstrap_logger = setup_logging(fs.resolve("logs"))
    try:
        cfg = ConfigManager(fs=fs, logger=bootstrap_logger).load_all()
    except ConfigError as e:
        bootstrap_logger.error(f"Config invalid: {e.user_message}")
        sys.exit(2)

    logger = setup_logging(fs.resolve(cfg.app.log_dir))
    if args.check_config:
        logger.info("Config OK.")
        return

    services = build_services(cfg, fs=fs)
    snapshot = asyncio.run(services.auth.initialize())
    if snapshot.user is not None:
        logger.info(f"Session restored for {snapshot.user.username}")
    elif snapshot.session_expired:
        logger.info("Stored session had expired; login required.")

    app = create_app(services, logger=logger)
    host = args.host or cfg.web.bind_host
    port = args.port or cfg.web.port
    logger.info(f"Web server starting on http://{host}:{port}")
    try:
        uvicorn.run(app, host=host, port=port, log_level="info")
    finally:
        services.shutdown()


if __name__ == "__main__":
    main()
