#region Imports
import asyncio
import logging
import os
import sys
import tempfile

from dotenv import find_dotenv, load_dotenv
#endregion

#region Logging
LOG_FILE = os.path.join(tempfile.gettempdir(), "mcp_browser_tools.log")


def configure_logging(level: str = "INFO") -> None:
    # stdout carries the MCP protocol; logs go to stderr and a file
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(LOG_FILE),
            logging.StreamHandler(sys.stderr),
        ],
        force=True,
    )
    # selenium and httpx are chatty at DEBUG
    for noisy in ("selenium", "urllib3", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(max(logging.WARNING, logging.getLogger().level))
#endregion


def main() -> None:
    load_dotenv(find_dotenv(filename=".env", usecwd=True))

    # Imported after .env is loaded: constants read the environment at import time
    from mcp_browser_tools.config import get_env_config
    from mcp_browser_tools.context import build_context, set_context
    from mcp_browser_tools.server import serve

    config = get_env_config()
    configure_logging(config["log_level"])
    logger = logging.getLogger("mcp_browser_tools")
    logger.info(f"mcp_browser_tools starting (headless={config['headless']}, timeout={config['timeout_ms']}ms)")

    context = build_context(config)
    set_context(context)
    try:
        asyncio.run(serve(context))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
