"""
Code search CLI: `codesearch` command.

Commands:
  codesearch serve             Run the MCP Streamable HTTP server
  codesearch search <query>    Run one aggregated search locally
  codesearch auth login        Store a GitHub token
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install github-code-search-mcp[cli]")

from code_search_mcp import __version__
from code_search_mcp.config import ServerConfig, load_config_file, save_config_file

console = Console()


def _load_config() -> dict:
    return load_config_file()


def _save_config(cfg: dict) -> None:
    save_config_file(cfg)


def _server_config(**overrides) -> ServerConfig:
    config = ServerConfig.load(**overrides)
    if not config.github_token:
        console.print("[red]GITHUB_TOKEN not set. Export it or run `codesearch auth login`.[/red]")
        raise SystemExit(1)
    return config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option(__version__)
def main():
    """GitHub code search over MCP Streamable HTTP."""


# Register subcommands from separate modules
from code_search_mcp.cli.auth import auth
from code_search_mcp.cli.search import search_cmd
from code_search_mcp.cli.serve import serve_cmd

main.add_command(auth)
main.add_command(search_cmd)
main.add_command(serve_cmd)


if __name__ == "__main__":
    main()
