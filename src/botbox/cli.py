"""CLI entry point for botbox.

Commands:
    botbox sync              # Update bundled docs, scripts, AGENTS.md, config
    botbox sync --check      # Exit 1 if anything is out of date (no writes)
    botbox init              # Bootstrap a project
    botbox doctor            # Check toolchain and project health
"""

import logging

import click

from botbox import __version__
from botbox.click_group import BotboxGroup
from botbox.commands import doctor_command, init_command, sync_command


@click.group(
    cls=BotboxGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
@click.pass_context
@click.version_option(version=__version__)
def main(ctx: click.Context, verbose: bool) -> None:
    """botbox - bootstrap and sync multi-agent coding workflows.

    Keeps a project's agent-facing docs, helper scripts and reviewer
    prompts in step with the installed botbox, and migrates the project
    config (.botbox.json) forward between versions.

    \b
    COMMANDS:
        init          Bootstrap a project (config, docs, AGENTS.md)
        sync          Bring bundled content and config up to date
        doctor        Check external tools and project health

    \b
    EXAMPLES:
        $ botbox init --name myapp --type cli --tools beads,maw,crit,botbus
        $ botbox sync
        $ botbox sync --check      # in CI

    For help on any command: botbox <command> --help
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
    )

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)


main.add_command(sync_command)
main.add_command(init_command)
main.add_command(doctor_command)


if __name__ == "__main__":
    main()


__all__ = ["main"]
