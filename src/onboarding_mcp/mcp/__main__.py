"""Allow running the MCP server as a module.

Usage:
    python -m onboarding_mcp.mcp        # starts the MCP server in stdio mode
    uv run python -m onboarding_mcp.mcp
"""

import logging
import sys

from onboarding_mcp.config import get_settings
from onboarding_mcp.mcp.server import configure, mcp

if __name__ == "__main__":
    settings = get_settings()
    # stdout carries the MCP stdio protocol
    logging.basicConfig(
        level=settings.log_level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    configure(settings)
    mcp.run()
