"""Quote card MCP server with market-cap magnitude reconciliation."""

import os


def get_server_version() -> str:
    """Get version with fallback for dev mode."""
    if version := os.environ.get("SERVER_VERSION"):
        return version
    try:
        from importlib.metadata import version as pkg_version

        return pkg_version("quote-mcp")
    except Exception:
        return "dev"


SERVER_VERSION = get_server_version()
# Bump when output schema changes materially (new fields, renamed fields, structure changes)
# v1: Initial quote card schema
# v2: market_cap block carries method/chosen_scale/confident provenance
SCHEMA_VERSION = "2"
