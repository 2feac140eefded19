"""shopagent ask — route and process one request."""

from __future__ import annotations

import asyncio
import json

import click


@click.command()
@click.argument("query")
@click.option("--agent", "agent_name", help="Send to this agent instead of routing.")
@click.option("--context", "context_pairs", multiple=True, metavar="KEY=VALUE", help="Context entries (repeatable).")
@click.option("--no-cache", is_flag=True, help="Bypass the response cache.")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON.")
@click.pass_context
def ask(
    ctx: click.Context,
    query: str,
    agent_name: str | None,
    context_pairs: tuple[str, ...],
    no_cache: bool,
    as_json: bool,
) -> None:
    """Ask the agents to handle QUERY."""
    from shopagent.agent.models import NO_CACHE
    from shopagent.core.cli.common import build_router, load_config, parse_context
    from shopagent.core.exceptions import ShopAgentError

    context = parse_context(context_pairs)
    if no_cache:
        context[NO_CACHE] = True

    try:
        router = build_router(load_config(ctx.obj.get("config_path")))
    except ShopAgentError as e:
        raise click.ClickException(str(e)) from e

    if agent_name:
        result = asyncio.run(router.route_to_agent(agent_name, query, context))
    else:
        result = asyncio.run(router.process(query, context))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        click.echo(result.summary())
    if not result.success:
        ctx.exit(1)
