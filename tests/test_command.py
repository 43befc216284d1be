"""Tests for building and running commands."""

import logging
import subprocess
from unittest.mock import Mock, patch

import pytest

from commandsmd.command import Command, build_commands
from commandsmd.config import RunConfig
from commandsmd.errors import (
    ExecutableNotFoundError,
    MissingOptionError,
    UnknownLanguageError,
)
from commandsmd.languages import PythonLanguage, ShellLanguage

DOCUMENT = """# Project

## `greet`

Say hello. Prints a greeting
for someone.

```bash
: ${NAME:=world}
echo "hello $NAME"
```

## `deploy`

Deploy the site.

```bash group=release
export TOKEN
echo "$TARGET"
```

## `report`

Print a report

with details.

```python
print("report")
```

## `legacy`

```cobol
DISPLAY 'HI'.
```
"""


def commands_by_alias(config=None):
    return {c.alias: c for c in build_commands(DOCUMENT, config, "doc.md")}


class TestBuildCommands:
    def test_builds_known_languages(self, caplog):
        with caplog.at_level(logging.WARNING, logger="commandsmd"):
            commands = commands_by_alias()
        assert list(commands) == ["greet", "deploy", "report"]
        assert "Skipping legacy" in caplog.text

    def test_fields(self):
        commands = commands_by_alias()
        assert commands["greet"].group == "default"
        assert commands["deploy"].group == "release"
        assert commands["greet"].help == "Say hello. Prints a greeting\nfor someone."
        assert isinstance(commands["greet"].language, ShellLanguage)
        assert isinstance(commands["report"].language, PythonLanguage)
        assert commands["deploy"].definition.startswith("\n## `deploy`")

    def test_strict_rejects_unknown_language(self):
        with pytest.raises(UnknownLanguageError, match="cobol"):
            build_commands(DOCUMENT, RunConfig(strict=True))

    def test_synopsis(self):
        commands = commands_by_alias()
        assert commands["greet"].synopsis == "Say hello"
        assert commands["report"].synopsis == "Print a report"
        assert commands["deploy"].synopsis == "Deploy the site"

    def test_usage_renders_definition(self):
        usage = commands_by_alias()["greet"].usage(width=60)
        assert "greet" in usage
        assert "Say hello" in usage
        assert "echo" in usage


class TestResolveOverrides:
    def test_given_values_win(self):
        greet = commands_by_alias()["greet"]
        assert greet.resolve_overrides({"NAME": "you"}, {"NAME": "env"}) == {
            "NAME": "you"
        }

    def test_defaults_are_left_to_the_script(self):
        greet = commands_by_alias()["greet"]
        assert greet.resolve_overrides({"NAME": None}, {"NAME": "env"}) == {}

    def test_no_default_falls_back_to_environment(self):
        deploy = commands_by_alias()["deploy"]
        assert deploy.resolve_overrides({}, {"TARGET": "prod"}) == {"TARGET": "prod"}

    def test_no_default_without_value(self):
        deploy = commands_by_alias()["deploy"]
        with pytest.raises(MissingOptionError, match="--TARGET"):
            deploy.resolve_overrides({"TARGET": None}, {"TARGET": ""})


class TestExecution:
    def test_execute(self):
        deploy = commands_by_alias()["deploy"]
        with patch("commandsmd.command.subprocess.run") as mock_run:
            mock_run.return_value = Mock(returncode=3)
            status = deploy.execute(
                {"TARGET": "prod"}, ["extra"], {"TOKEN": "t", "TARGET": "old"}
            )

        assert status == 3
        argv = mock_run.call_args.args[0]
        assert argv[0] == "bash"
        assert 'echo "${TARGET:=prod}"' in argv[2]
        assert argv[3:] == ["deploy", "extra"]
        assert mock_run.call_args.kwargs["env"] == {"TOKEN": "t"}

    def test_execute_missing_interpreter(self):
        report = commands_by_alias()["report"]
        with patch(
            "commandsmd.command.subprocess.run", side_effect=FileNotFoundError()
        ):
            with pytest.raises(ExecutableNotFoundError, match="python3"):
                report.execute({}, [], {})

    def test_check(self):
        greet = commands_by_alias()["greet"]
        completed = subprocess.CompletedProcess([], 2, stdout="syntax error\n")
        with patch("commandsmd.command.subprocess.run", return_value=completed) as run:
            result = greet.check()

        assert not result.ok
        assert result.output == "syntax error\n"
        assert run.call_args.args[0][:3] == ["bash", "-n", "-c"]
        assert run.call_args.kwargs["stderr"] == subprocess.STDOUT

    def test_check_missing_interpreter(self):
        command = Command("x", "default", "", "", PythonLanguage("pass\n"))
        with patch("commandsmd.command.subprocess.run", side_effect=OSError("nope")):
            result = command.check()
        assert not result.ok
        assert "nope" in result.output
