"""Allow ``python -m notion_cli``."""

from notion_cli.cli import main

main()
