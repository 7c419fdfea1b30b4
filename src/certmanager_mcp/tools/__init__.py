"""MCP Tools for certificate operations.

Tools are registered via @mcp.tool() decorators when modules are imported.
"""

# Import tool modules to trigger registration via decorators
from . import certificates

__all__ = [
    "certificates",
]
