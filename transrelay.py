"""Translation relay server.

Serves batch and streaming translation requests over HTTP and WebSocket, backed by a two-tier cache and
the configured AI provider. Settings are read from transrelay.ini; provider keys are read from the
`<PROVIDER>_API_OAUTH` environment variables.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Final, NoReturn

from aiohttp import web

from config.loader import Config, ConfigLoader, ConfigLoaderError
from core.server import TranslationServer
from core.shared_data import SharedData
from core.version import VERSION
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

CFG_FILE: Final[str] = "transrelay.ini"


def check_python_version() -> None:
    """Check if Python version is 3.13 or later.

    Raises:
        RuntimeError: If Python version is below 3.13.
    """
    if sys.version_info < (3, 13):
        msg = "Python 3.13 or later is required"
        raise RuntimeError(msg)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"\n{message}\n", file=sys.stderr)
        self.print_help(sys.stderr)
        raise SystemExit(2)


def parse_arguments() -> argparse.Namespace:
    parser = _ArgumentParser(
        description="Batch translation relay with caching and streaming delivery",
        epilog="Example: python transrelay.py --port 8787 --model gpt-4o-mini",
    )
    parser.add_argument("--debug", dest="debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--host", dest="host", metavar="HOST", help="Override the listen address")
    parser.add_argument("--port", dest="port", metavar="PORT", type=int, help="Override the listen port")
    parser.add_argument("--model", dest="model", metavar="MODEL", help="Override the translation model")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser.parse_args()


def load_config(args: argparse.Namespace) -> Config:
    """Load the configuration file and apply CLI overrides.

    Raises:
        ConfigLoaderError: If the configuration file cannot be loaded.
    """
    script_name: str = Path(sys.argv[0]).stem
    config: Config = ConfigLoader(config_filename=CFG_FILE, script_name=script_name, **vars(args)).config
    config.GENERAL.VERSION = VERSION
    return config


def setup_logging(config: Config) -> logging.Logger:
    log_file: str = str(FileUtils.resolve_path(config.GENERAL.LOG_FILE)) if config.GENERAL.LOG_FILE else ""
    logger_utils = LoggerUtils(log_file)
    logger_utils.apply_debug(debug=config.GENERAL.DEBUG)
    return LoggerUtils.get_logger(__name__)


async def serve(config: Config) -> None:
    """Run the server until cancelled."""
    server = TranslationServer(SharedData(config))
    runner = web.AppRunner(server.create_app())
    await runner.setup()
    site = web.TCPSite(runner, host=config.SERVER.HOST, port=config.SERVER.PORT)
    try:
        await site.start()
        print(f"TransRelay {VERSION} listening on http://{config.SERVER.HOST}:{config.SERVER.PORT}")
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


def main() -> None:
    check_python_version()
    args: argparse.Namespace = parse_arguments()
    try:
        config: Config = load_config(args)
    except ConfigLoaderError as err:
        print("\nError: Failed to load configuration file.", file=sys.stderr)
        print(f"Details: {err}", file=sys.stderr)
        raise SystemExit(1) from err

    logger: logging.Logger = setup_logging(config)
    logger.info("TransRelay %s starting (model=%r)", VERSION, config.TRANSLATION.MODEL or "default")
    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        print("\nShutting down.", file=sys.stderr)
    except OSError as err:
        logger.critical("Server error: %s", err)
        print(f"\nFatal error: {err}", file=sys.stderr)
        raise SystemExit(1) from err


if __name__ == "__main__":
    main()
