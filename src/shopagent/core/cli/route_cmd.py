"""shopagent route — show which agent would handle a request."""

from __future__ import annotations

import click


@click.command()
@click.argument("query")
@click.option("--previous-agent", help="Agent that handled the previous turn (continuity bonus).")
@click.pass_context
def route(ctx: click.Context, query: str, previous_agent: str | None) -> None:
    """Print the routing decision for QUERY without calling any model."""
    from shopagent.agent.models import PREVIOUS_AGENT
    from shopagent.agent.router import needs_orchestration
    from shopagent.core.cli.common import build_router, load_config
    from shopagent.core.exceptions import ShopAgentError

    try:
        router = build_router(load_config(ctx.obj.get("config_path")))
    except ShopAgentError as e:
        raise click.ClickException(str(e)) from e

    context = {PREVIOUS_AGENT: previous_agent} if previous_agent else {}
    if needs_orchestration(query):
        click.echo("Cross-system request: handled by the orchestrator")
        return

    decision = router.select_best_agent(query, context)
    for name, score in sorted(decision.scores.items(), key=lambda kv: kv[1], reverse=True):
        marker = "*" if name == decision.agent else " "
        click.echo(f"{marker} {name:<12} {score:g}")
    target = decision.agent if decision.delegate else "orchestrator"
    click.echo(f"\n{decision.rationale}\n-> {target}")
