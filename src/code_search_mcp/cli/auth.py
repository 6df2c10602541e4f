"""CLI: codesearch auth login|status|logout"""

import os

import click
from rich.console import Console

console = Console()


def _load_config() -> dict:
    from code_search_mcp.cli.main import _load_config
    return _load_config()


def _save_config(cfg: dict) -> None:
    from code_search_mcp.cli.main import _save_config
    _save_config(cfg)


@click.group()
def auth():
    """GitHub token management."""


@auth.command("login")
@click.option("--token", default=None, help="GitHub token (prompted when omitted)")
def auth_login(token):
    """Save a GitHub token to the config file."""
    token = token or click.prompt("GitHub token", hide_input=True)
    cfg = _load_config()
    _save_config({**cfg, "github_token": token.strip()})
    console.print("[green]Token saved to ~/.codesearch/config.json[/green]")


@auth.command("status")
def auth_status():
    """Show where the GitHub token comes from."""
    if os.environ.get("GITHUB_TOKEN"):
        console.print("[green]Token set[/green] via GITHUB_TOKEN")
    elif _load_config().get("github_token"):
        console.print("[green]Token set[/green] in ~/.codesearch/config.json")
    else:
        console.print("[yellow]No token. Run `codesearch auth login`.[/yellow]")


@auth.command("logout")
def auth_logout():
    """Remove the saved token."""
    cfg = _load_config()
    cfg.pop("github_token", None)
    _save_config(cfg)
    console.print("[green]Token removed.[/green]")
