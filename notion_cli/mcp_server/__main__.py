"""Entry point for ``python -m notion_cli.mcp_server``."""

from notion_cli.mcp_server import main

main()
