"""CLI: codesearch search <query>"""

import json

import click
from rich.console import Console
from rich.table import Table

from code_search_mcp.aggregator import SearchAggregator
from code_search_mcp.errors import CodeSearchError
from code_search_mcp.tool import parse_arguments
from code_search_mcp.transport.github import GitHubClient

console = Console()


def _server_config(**overrides):
    from code_search_mcp.cli.main import _server_config
    return _server_config(**overrides)


def _run(coro):
    from code_search_mcp.cli.main import _run
    return _run(coro)


@click.command("search")
@click.argument("query")
@click.option("--sort", type=click.Choice(["indexed"]), default=None)
@click.option("--order", type=click.Choice(["asc", "desc"]), default=None)
@click.option("--per-page", type=int, default=None)
@click.option("--page", type=int, default=None)
@click.option("--max-items", type=int, default=None)
@click.option("--max-pages", type=int, default=None)
@click.option("--text-match", is_flag=True)
@click.option("--json-output", "--json", is_flag=True)
def search_cmd(query, sort, order, per_page, page, max_items, max_pages, text_match, json_output):
    """Search GitHub code and print the aggregated result."""
    arguments = {
        "q": query, "sort": sort, "order": order, "per_page": per_page, "page": page,
        "max_items": max_items, "max_pages": max_pages, "text_match": text_match,
    }
    config = _server_config()

    async def _search():
        client = GitHubClient(token=config.github_token, base_url=config.api_url)
        try:
            request = parse_arguments({k: v for k, v in arguments.items() if v is not None})
            with console.status("Searching..."):
                return await SearchAggregator(client).aggregate(request)
        finally:
            await client.close()

    try:
        result = _run(_search())
    except CodeSearchError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)

    if json_output:
        click.echo(json.dumps(result.payload(), indent=2))
        return
    console.print(result.summary())
    if result.incomplete:
        console.print("[yellow]GitHub reported incomplete results.[/yellow]")
    table = Table(title=f"First {len(result.preview())} results")
    table.add_column("Location", style="bold")
    table.add_column("URL")
    for link in result.preview():
        table.add_row(link.name, link.uri)
    console.print(table)
