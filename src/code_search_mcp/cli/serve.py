"""CLI: codesearch serve"""

import logging

import click
import uvicorn

from code_search_mcp.app import create_app

logger = logging.getLogger(__name__)


def _server_config(**overrides):
    from code_search_mcp.cli.main import _server_config
    return _server_config(**overrides)


def _setup_logging(level: str) -> None:
    from code_search_mcp.cli.main import _setup_logging
    _setup_logging(level)


@click.command("serve")
@click.option("--host", default=None, help="Bind address (default 127.0.0.1)")
@click.option("-p", "--port", default=None, type=int, help="Listen port (default 3000)")
@click.option("--json-response", is_flag=True, default=None,
              help="Answer POSTs with one JSON body instead of an SSE stream")
@click.option("--log-level", default=None,
              type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False))
def serve_cmd(host, port, json_response, log_level):
    """Run the MCP Streamable HTTP server."""
    config = _server_config(host=host, port=port, json_response=json_response, log_level=log_level)
    _setup_logging(config.log_level)
    logger.info("MCP Streamable HTTP server on %s:%s", config.host, config.port)
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level=config.log_level)
