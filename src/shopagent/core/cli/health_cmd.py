"""shopagent health — check every agent."""

from __future__ import annotations

import asyncio
import json

import click


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print the full report as JSON.")
@click.pass_context
def health(ctx: click.Context, as_json: bool) -> None:
    """Run the system health check."""
    from shopagent.core.cli.common import build_router, load_config
    from shopagent.core.exceptions import ShopAgentError
    from shopagent.core.health import HEALTHY, check_system_health

    try:
        router = build_router(load_config(ctx.obj.get("config_path")))
    except ShopAgentError as e:
        raise click.ClickException(str(e)) from e

    report = asyncio.run(check_system_health(router, include_direct=True))
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2, default=str))
    else:
        click.echo(f"System: {report.status} ({report.healthy_count}/{len(report.agents)} agents healthy)")
        for issue in report.issues:
            click.echo(f"  - {issue}")
    if report.status != HEALTHY:
        ctx.exit(1)
