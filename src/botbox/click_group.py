"""Custom Click group that shows contextual help on usage errors."""

from typing import Any

import click


class BotboxGroup(click.Group):
    """Click group that prints the error followed by the relevant help text."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except (
            click.exceptions.UsageError,
            click.exceptions.BadParameter,
            click.exceptions.MissingParameter,
        ) as e:
            click.echo(f"Error: {e.format_message()}", err=True)

            # Prefer the subcommand's context so its help is shown
            error_ctx = e.ctx if e.ctx else ctx
            click.echo("")
            click.echo(error_ctx.get_help())
            error_ctx.exit(e.exit_code)
            return None

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        """Show the group help when the command is unknown."""
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            if isinstance(e, click.exceptions.MissingParameter | click.exceptions.BadParameter):
                raise
            click.echo(f"Error: {e.format_message()}", err=True)
            click.echo("")
            click.echo(ctx.get_help())
            ctx.exit(1)
            return None, None, []


BotboxGroup.group_class = BotboxGroup
