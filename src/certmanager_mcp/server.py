"""
Certmanager MCP Server - Main entry point.

An MCP server that bootstraps mTLS certificates backed by Azure Key Vault.
"""

import logging
import sys

from mcp.server.fastmcp import FastMCP

from . import __version__

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("certmanager-mcp")

mcp = FastMCP("certmanager-mcp")

# Tool modules register themselves on import via @mcp.tool()
from . import tools  # noqa: E402,F401


def main() -> None:
    """Main entry point."""
    logger.info(f"Starting Certmanager MCP Server v{__version__}")
    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Server shutting down...")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
