"""CLI interface for commandsmd."""

import logging
import os
import textwrap
from typing import Dict, List, Optional

import click

from .command import DEFAULT_GROUP, Command, build_commands
from .config import RunConfig
from .errors import (
    CommandsMdError,
    MissingEnvironmentError,
    MissingOptionError,
    UnknownLocalError,
    UnsupportedOverrideError,
)
from .inputs import STDIN, read_input
from .logging import configure_logging

logger = logging.getLogger(__name__)

ARGS_PARAM = "commandsmd_args"
BUILTIN_GROUP = "built-in"

_USAGE_ERRORS = (
    MissingOptionError,
    MissingEnvironmentError,
    UnknownLocalError,
    UnsupportedOverrideError,
)


class DocumentCommand(click.Command):
    """A click command running one documented command."""

    def __init__(self, command: Command):
        self.command = command
        self.group = command.group
        params: List[click.Parameter] = [
            click.Option(
                [f"--{parameter.name}", parameter.name],
                default=None,
                metavar="VALUE",
                help=parameter.help,
            )
            for parameter in command.language.parameters()
        ]
        params.append(
            click.Argument(
                [ARGS_PARAM], nargs=-1, type=click.UNPROCESSED, metavar="[ARGS]..."
            )
        )
        super().__init__(
            name=command.alias,
            params=params,
            callback=self._run,
            help=command.help,
            short_help=command.synopsis,
            context_settings={"allow_interspersed_args": False},
        )

    def format_help_text(self, ctx, formatter):
        """Show the command as written in the document."""
        formatter.write_paragraph()
        formatter.write(self.command.usage(formatter.width))

    def _run(self, **values):
        ctx = click.get_current_context()
        args = values.pop(ARGS_PARAM)
        try:
            status = self.command.execute(values, args)
        except _USAGE_ERRORS as e:
            raise click.UsageError(str(e), ctx) from e
        except CommandsMdError as e:
            raise click.ClickException(str(e)) from e
        ctx.exit(status)


def check_command(commands: List[Command]) -> click.Command:
    """Build the ``check`` command validating the given commands."""

    @click.command("check")
    @click.argument("name", required=False)
    @click.pass_context
    def check(ctx, name: Optional[str]):
        """Check command bodies for syntax errors without running them."""
        selected = commands
        if name is not None:
            selected = [c for c in commands if c.alias == name]
            if not selected:
                raise click.BadParameter(f"no such command: {name}", ctx)

        failed = False
        for command in selected:
            try:
                result = command.check()
                ok, output = result.ok, result.output
            except CommandsMdError as e:
                ok, output = False, str(e)
            click.echo(f"{'ok' if ok else 'error'}\t{command.alias}")
            if output.strip():
                click.echo(textwrap.indent(output.rstrip(), "    "))
            failed = failed or not ok
        if failed:
            ctx.exit(1)

    check.group = BUILTIN_GROUP  # type: ignore[attr-defined]
    return check


class DocumentGroup(click.Group):
    """Commands of one document, listed by their ``group`` attribute."""

    def format_commands(self, ctx, formatter):
        sections: Dict[str, list] = {}
        for name in self.list_commands(ctx):
            command = self.get_command(ctx, name)
            if command is None or command.hidden:
                continue
            group = getattr(command, "group", DEFAULT_GROUP)
            sections.setdefault(group, []).append((name, command))
        if not sections:
            return

        order = sorted(
            sections, key=lambda g: (g == BUILTIN_GROUP, g != DEFAULT_GROUP, g)
        )
        width = max(len(name) for rows in sections.values() for name, _ in rows)
        limit = formatter.width - 6 - width
        for group in order:
            rows = [(n, c.get_short_help_str(limit)) for n, c in sections[group]]
            with formatter.section(f"{group.capitalize()} commands"):
                formatter.write_dl(rows)


def document_group(commands: List[Command]) -> DocumentGroup:
    group = DocumentGroup(
        help="Commands defined in this document.",
        context_settings={"help_option_names": ["-h", "--help"]},
    )
    group.add_command(check_command(commands))
    for command in commands:
        if command.alias in group.commands:
            logger.warning(
                "%s is defined more than once, using the last one", command.alias
            )
        group.add_command(DocumentCommand(command))
    return group


@click.command(
    context_settings={
        "allow_interspersed_args": False,
        "ignore_unknown_options": True,
        "help_option_names": ["-h", "--help"],
    }
)
@click.argument("input_path", metavar="INPUT", default=STDIN, required=False)
@click.argument(
    "command_args", nargs=-1, type=click.UNPROCESSED, metavar="[COMMAND]..."
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.option(
    "--strict",
    is_flag=True,
    envvar="COMMANDSMD_STRICT",
    help="Fail on code blocks that cannot be analyzed or run",
)
@click.option(
    "--default-language",
    envvar="COMMANDSMD_DEFAULT_LANGUAGE",
    help="Language of code blocks without an info string (default: bash)",
)
@click.option("--version", is_flag=True, help="Show the build id and exit")
@click.pass_context
def main(
    ctx,
    input_path: str,
    command_args: tuple,
    verbose: bool,
    strict: Optional[bool],
    default_language: Optional[str],
    version: bool,
):
    """Run the commands documented in a Markdown file.

    INPUT is a path, - for stdin, .../NAME to search NAME in the current
    directory and its parents, or a URL. Every heading holding only an inline
    code span, followed by a fenced code block, becomes a command.
    """
    config = RunConfig.from_environ(
        strict=strict, verbose=verbose or None, default_language=default_language
    )
    if version:
        click.echo(f"commandsmd {config.build_id}")
        return

    configure_logging(config.verbose)
    if config.working_directory is not None:
        os.chdir(config.working_directory)

    try:
        document = read_input(input_path)
        commands = build_commands(document.text, config, document.origin)
    except CommandsMdError as e:
        raise click.ClickException(str(e)) from e

    group = document_group(commands)
    with group.make_context(input_path, list(command_args), parent=ctx) as sub_ctx:
        group.invoke(sub_ctx)


if __name__ == "__main__":
    main()
