import logging
import sys
import traceback

from .server import run_server

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    try:
        logger.info("Starting Loki MCP Server via __main__")
        logger.info(f"Python version: {sys.version}")
        run_server()
        sys.exit(0)
    except ImportError as e:
        logger.critical(f"IMPORT ERROR: Failed to import required module: {str(e)}")
        logger.critical(f"Traceback: {traceback.format_exc()}")
        sys.exit(1)
