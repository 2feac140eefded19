"""shopagent CLI — entry point for ask, route, agents and health commands."""

import click

from shopagent import __version__


@click.group()
@click.version_option(version=__version__, package_name="shopagent")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Path to a YAML or JSON config file.")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
@click.pass_context
def main(ctx: click.Context, config_path: str | None, log_level: str) -> None:
    """shopagent — AI operations agents for your storefront."""
    from shopagent.core.utils.logging import setup_logging

    setup_logging(level=log_level.upper())
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# Register subcommands (lazy imports keep startup fast)
from .agents_cmd import agents
from .ask_cmd import ask
from .health_cmd import health
from .route_cmd import route

main.add_command(ask)
main.add_command(route)
main.add_command(agents)
main.add_command(health)
