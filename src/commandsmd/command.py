"""Runnable commands built from a document."""

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from .config import RunConfig
from .errors import ExecutableNotFoundError, MissingOptionError, UnknownLanguageError
from .languages import Invocation, Language, build_language
from .logging import render_markdown
from .model import CommandDefinition, NoDefault
from .scanner import scan_definitions

logger = logging.getLogger(__name__)

DEFAULT_GROUP = "default"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of validating a command body."""

    ok: bool
    output: str


@dataclass
class Command:
    alias: str
    group: str
    help: str
    definition: str
    language: Language

    @property
    def synopsis(self) -> str:
        """Help text up to the first period or blank line."""
        return self.help.split(".", 1)[0].split("\n\n", 1)[0].strip()

    def usage(self, width: int = 80) -> str:
        return render_markdown(self.definition, width)

    def resolve_overrides(
        self,
        given: Mapping[str, Optional[str]],
        environ: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, str]:
        """Turn option values into overrides.

        A value given on the command line always wins. A parameter without a
        default falls back to a non-empty environment variable of the same
        name; with neither, it is an error. Parameters with a default in the
        script are left to the script.
        """
        if environ is None:
            environ = os.environ
        overrides: Dict[str, str] = {}
        for parameter in self.language.parameters():
            value = given.get(parameter.name)
            if value is not None:
                overrides[parameter.name] = value
            elif isinstance(parameter.default, NoDefault):
                if not environ.get(parameter.name):
                    raise MissingOptionError(parameter.name)
                overrides[parameter.name] = environ[parameter.name]
        return overrides

    def check(self) -> CheckResult:
        """Validate the body with its interpreter, capturing the output."""
        invocation = self.language.check_invocation()
        logger.debug("check %s: %s", self.alias, invocation.argv)
        try:
            result = subprocess.run(
                invocation.argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as e:
            return CheckResult(False, str(e))
        return CheckResult(result.returncode == 0, result.stdout)

    def invocation(
        self,
        given: Mapping[str, Optional[str]],
        args: Sequence[str] = (),
        environ: Optional[Mapping[str, str]] = None,
    ) -> Invocation:
        if environ is None:
            environ = dict(os.environ)
        overrides = self.resolve_overrides(given, environ)
        return self.language.exec_invocation(overrides, args, environ)

    def execute(
        self,
        given: Mapping[str, Optional[str]],
        args: Sequence[str] = (),
        environ: Optional[Mapping[str, str]] = None,
    ) -> int:
        """Run the command with inherited stdio and return its exit status."""
        invocation = self.invocation(given, args, environ)
        logger.debug("run %s: %s", self.alias, invocation.argv)
        try:
            return subprocess.run(invocation.argv, env=invocation.env).returncode
        except FileNotFoundError as e:
            raise ExecutableNotFoundError(invocation.argv[0]) from e


def build_command(definition: CommandDefinition, config: RunConfig) -> Command:
    return Command(
        alias=definition.name,
        group=definition.fields.get("group") or DEFAULT_GROUP,
        help=definition.help,
        definition=definition.definition,
        language=build_language(definition, config),
    )


def build_commands(
    source: str, config: Optional[RunConfig] = None, origin: Optional[str] = None
) -> List[Command]:
    """Build a command for every definition in ``source``.

    Definitions in an unknown language are skipped with a warning unless
    ``config.strict`` is set.
    """
    if config is None:
        config = RunConfig()
    commands = []
    for definition in scan_definitions(source, origin):
        try:
            commands.append(build_command(definition, config))
        except UnknownLanguageError as e:
            if config.strict:
                raise
            logger.warning("Skipping %s: %s", definition.name, e)
    return commands
