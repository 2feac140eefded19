"""shopagent agents — list configured agents."""

from __future__ import annotations

import click


@click.command()
@click.pass_context
def agents(ctx: click.Context) -> None:
    """List configured agents, their keywords and tools."""
    from shopagent.core.cli.common import build_router, load_config
    from shopagent.core.exceptions import ShopAgentError

    try:
        router = build_router(load_config(ctx.obj.get("config_path")))
    except ShopAgentError as e:
        raise click.ClickException(str(e)) from e

    described = router.describe()
    if not described:
        click.echo("No agents configured. Add agents with tools to your config file.")
        return
    for info in described:
        click.echo(f"{info['name']} (priority {info['priority']})")
        if info["description"]:
            click.echo(f"  {info['description']}")
        click.echo(f"  keywords: {', '.join(info['specialization'])}")
        click.echo(f"  tools:    {', '.join(info['tools'])}")
