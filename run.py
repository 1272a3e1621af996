#!/usr/bin/env python3
"""
BWLaunch Runner - Starts the launcher API and the dark mode monitor
"""

import os

from waitress import serve

from bwlaunch.app import create_app
from bwlaunch.config import load_config
from bwlaunch.services.service_manager import get_service_manager
from bwlaunch.utils.logger import log_shutdown, log_startup, setup_logger


def main() -> None:
    logger = setup_logger("bwlaunch")
    log_startup("bwlaunch")

    config = load_config()
    default_port = 5000 if config.get("environment") == "production" else 5001
    port = int(os.environ.get("PORT", default_port))
    host = os.environ.get("BWLAUNCH_HOST", config.get("host", "127.0.0.1"))
    debug_mode = bool(config.get("debug", False))

    services = get_service_manager()
    app = create_app(services)

    # Only automatic schedules need the monitor after boot
    if services.theme.sync_monitor():
        logger.info("🌓 Dark mode monitor started (%s)", config.get("dark_mode_schedule"))

    logger.info(f"🚀 Starting BWLaunch on {host}:{port}")
    logger.info(f"🌍 Environment: {config.get('environment', 'unknown')}")
    try:
        if debug_mode:
            app.run(host=host, port=port, debug=True, use_reloader=False)
        else:
            threads = int(os.environ.get("BWLAUNCH_WAITRESS_THREADS", "4"))
            logger.info(f"🍽️ Using Waitress WSGI server (threads={threads})")
            serve(app, host=host, port=port, threads=threads)
    finally:
        services.shutdown()
        log_shutdown(logger, "bwlaunch")


if __name__ == "__main__":
    main()
