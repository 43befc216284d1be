"""Interpreters a command body can be run with.

Every language provides the same three operations:

* ``check_invocation()``: argv that validates the body without running it
* ``exec_invocation(overrides, args, environ)``: argv and environment that run it
* ``parameters()``: the options the body accepts

``DockerWrapped`` decorates any of them to run inside a container.
"""

import logging
import shutil
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .config import RunConfig
from .errors import (
    ExecutableNotFoundError,
    MissingEnvironmentError,
    ShellSyntaxError,
    UnknownLanguageError,
    UnsupportedSyntaxError,
)
from .model import CommandDefinition, ExpressionValue, LiteralValue, ShellValue
from .shell import ShellCommand

logger = logging.getLogger(__name__)

SHELLS = ("bash", "sh", "shell")


@dataclass(frozen=True)
class Parameter:
    """An option accepted by a command."""

    name: str
    default: ShellValue
    help: str = ""


@dataclass
class Invocation:
    """A process to start. ``env`` of None inherits the caller's environment."""

    argv: List[str]
    env: Optional[Dict[str, str]] = None


def _parameter_help(name: str, default: ShellValue) -> str:
    if isinstance(default, LiteralValue):
        return f"falls back to ${name} (default: {default.text!r})"
    if isinstance(default, ExpressionValue):
        return f"falls back to ${name} (default is expression {default.text})"
    return f"falls back to ${name}"


@dataclass
class ShellLanguage:
    """A shell body. Without an analysis it is run as written."""

    name: str
    interpreter: str
    text: str
    analysis: Optional[ShellCommand] = None

    @property
    def environment(self) -> List[str]:
        if self.analysis is None:
            return []
        return list(self.analysis.exports)

    def parameters(self) -> List[Parameter]:
        if self.analysis is None:
            return []
        return [
            Parameter(name, default, _parameter_help(name, default))
            for name, default in self.analysis.locals.items()
        ]

    def check_invocation(self) -> Invocation:
        return Invocation([self.interpreter, "-n", "-c", self.text])

    def exec_invocation(
        self,
        overrides: Mapping[str, str],
        args: Sequence[str],
        environ: Mapping[str, str],
    ) -> Invocation:
        if self.analysis is None:
            return Invocation([self.interpreter, "-c", self.text, self.name, *args])

        missing = [n for n in self.analysis.required_exports if not environ.get(n)]
        if missing:
            raise MissingEnvironmentError(missing)

        script = self.analysis.render(overrides)
        # Explicit values must not lose to `${NAME:=value}` picking up the
        # inherited variable.
        env = {k: v for k, v in environ.items() if k not in overrides}
        return Invocation([self.interpreter, "-c", script, self.name, *args], env)


@dataclass
class PythonLanguage:
    text: str
    interpreter: str = "python3"
    environment: List[str] = field(default_factory=list)

    def parameters(self) -> List[Parameter]:
        return []

    def check_invocation(self) -> Invocation:
        return Invocation(
            [
                self.interpreter,
                "-c",
                "import ast, sys; ast.parse(sys.argv[1])",
                self.text,
            ]
        )

    def exec_invocation(
        self,
        overrides: Mapping[str, str],
        args: Sequence[str],
        environ: Mapping[str, str],
    ) -> Invocation:
        return Invocation([self.interpreter, "-c", self.text, *args])


@dataclass
class NodeLanguage:
    text: str
    interpreter: str = "node"
    environment: List[str] = field(default_factory=list)

    def parameters(self) -> List[Parameter]:
        return []

    def check_invocation(self) -> Invocation:
        return Invocation(
            [
                self.interpreter,
                "--eval",
                "const vm = require('vm'); new vm.Script(process.argv[1])",
                "--",
                self.text,
            ]
        )

    def exec_invocation(
        self,
        overrides: Mapping[str, str],
        args: Sequence[str],
        environ: Mapping[str, str],
    ) -> Invocation:
        return Invocation([self.interpreter, "--eval", self.text, "--", *args])


Interpreted = Union[ShellLanguage, PythonLanguage, NodeLanguage]


@dataclass
class DockerWrapped:
    """Runs another language's invocations with ``docker run``."""

    inner: Interpreted
    image: str
    docker: str = "docker"

    @property
    def environment(self) -> List[str]:
        return self.inner.environment

    def parameters(self) -> List[Parameter]:
        return self.inner.parameters()

    def _wrap(self, invocation: Invocation) -> Invocation:
        docker = shutil.which(self.docker)
        if docker is None:
            raise ExecutableNotFoundError(self.docker)
        argv = [docker, "run", "--rm", "-i"]
        for name in self.environment:
            argv.extend(["--env", name])
        argv.append(self.image)
        return Invocation(argv + invocation.argv, invocation.env)

    def check_invocation(self) -> Invocation:
        return self._wrap(self.inner.check_invocation())

    def exec_invocation(
        self,
        overrides: Mapping[str, str],
        args: Sequence[str],
        environ: Mapping[str, str],
    ) -> Invocation:
        return self._wrap(self.inner.exec_invocation(overrides, args, environ))


Language = Union[ShellLanguage, PythonLanguage, NodeLanguage, DockerWrapped]


def _shell_language(definition: CommandDefinition, interpreter: str, strict: bool):
    try:
        analysis = ShellCommand.parse(definition.body)
    except (ShellSyntaxError, UnsupportedSyntaxError) as e:
        if strict:
            raise
        logger.warning(
            "%s: cannot analyze %s, running it without options: %s",
            definition.location,
            definition.name,
            e,
        )
        analysis = None
    return ShellLanguage(definition.name, interpreter, definition.body, analysis)


def build_language(definition: CommandDefinition, config: RunConfig) -> Language:
    """Pick the language variant for a definition.

    Raises:
        UnknownLanguageError: the info string names no supported language
        ShellSyntaxError, UnsupportedSyntaxError: the shell body cannot be
            analyzed and ``config.strict`` is set
    """
    language = definition.language or config.default_language

    inner: Interpreted
    if language in SHELLS:
        interpreter = config.shell if language == "shell" else language
        inner = _shell_language(definition, interpreter, config.strict)
    elif language == "python":
        inner = PythonLanguage(definition.body)
    elif language == "node":
        inner = NodeLanguage(definition.body)
    else:
        raise UnknownLanguageError(language, definition.location)

    image = definition.fields.get("image")
    if image:
        return DockerWrapped(inner, image, config.docker)
    return inner
