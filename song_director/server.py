"""
Song Director Server.

Main entry point: loads the JSON configuration file, applies command line
overrides, configures logging and runs the web server that carries the
director control calls and the viewer push channel.
"""

import argparse
import json
import logging
import os
import sys
from typing import Dict, List, Optional

from . import __version__
from .const import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_SEND_TIMEOUT
from .paths import DEFAULT_CONFIG_PATH, ensure_directories, get_log_file_path
from .utils.logging_utils import setup_logging
from .web.api_server import run_server

logger = logging.getLogger(__name__)


def load_config_file(config_path: Optional[str] = None) -> Dict:
    """Load configuration from JSON file."""
    if config_path is None:
        config_path = str(DEFAULT_CONFIG_PATH)
    config = {}
    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                loaded_config = json.load(f)
            # Filter out comments and null values
            config = {k: v for k, v in loaded_config.items() if k != "comments" and v is not None}
            logger.info(f"Loaded configuration from {config_path}")
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Failed to load config file {config_path}: {e}")
    else:
        logger.debug(f"Config file not found: {config_path}")
    return config


def build_config(argv: Optional[List[str]] = None) -> Dict:
    """
    Resolve the server configuration.

    Values come from the JSON config file and are overridden by command line
    arguments.

    Args:
        argv: Command line arguments, defaults to sys.argv[1:]

    Returns:
        Configuration dictionary
    """
    # Parse just the config argument first to know which config file to load
    parser_config = argparse.ArgumentParser(add_help=False)
    parser_config.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Path to configuration file")
    config_args, _ = parser_config.parse_known_args(argv)

    file_config = load_config_file(config_args.config)

    parser = argparse.ArgumentParser(description="Song Director section cue server")
    parser.add_argument("--config", default=config_args.config, help="Path to configuration file")
    parser.add_argument(
        "--debug", action="store_true", default=file_config.get("debug", False), help="Enable debug logging"
    )
    parser.add_argument("--host", default=file_config.get("host", DEFAULT_HOST), help="Web server host")
    parser.add_argument("--port", type=int, default=file_config.get("port", DEFAULT_PORT), help="Web server port")
    parser.add_argument(
        "--static-dir", default=file_config.get("static_dir"), help="Directory with a built frontend to serve"
    )
    parser.add_argument(
        "--send-timeout",
        type=float,
        default=file_config.get("send_timeout", DEFAULT_SEND_TIMEOUT),
        help="Seconds allowed for one push to a viewer, 0 for no limit",
    )
    parser.add_argument("--log-file", default=file_config.get("log_file"), help="Log file path")
    parser.add_argument("--no-log-file", action="store_true", help="Log to the console only")

    args = parser.parse_args(argv)

    log_file = None
    if not args.no_log_file:
        log_file = args.log_file or str(get_log_file_path())

    return {
        "config_path": args.config,
        "debug": args.debug,
        "host": args.host,
        "port": args.port,
        "static_dir": args.static_dir,
        "send_timeout": args.send_timeout if args.send_timeout and args.send_timeout > 0 else None,
        "log_file": log_file,
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    config = build_config(argv)

    if config["log_file"]:
        ensure_directories()
    setup_logging(config["debug"], config["log_file"])

    logger.info(f"Starting Song Director v{__version__}")
    logger.info(f"Configuration: {config}")

    try:
        run_server(
            host=config["host"],
            port=config["port"],
            debug=config["debug"],
            static_dir=config["static_dir"],
            send_timeout=config["send_timeout"],
        )
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    except OSError as e:
        logger.error(f"Server failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
