"""Tests for language variants and their invocations."""

import logging
from unittest.mock import patch

import pytest

from commandsmd.config import RunConfig
from commandsmd.errors import (
    ExecutableNotFoundError,
    MissingEnvironmentError,
    ShellSyntaxError,
    UnknownLanguageError,
    UnsupportedSyntaxError,
)
from commandsmd.languages import (
    DockerWrapped,
    NodeLanguage,
    PythonLanguage,
    ShellLanguage,
    build_language,
)
from commandsmd.model import NO_DEFAULT, ExpressionValue, LiteralValue
from commandsmd.scanner import scan_definitions


def definition(body: str, info: str = "bash", name: str = "task"):
    source = f"## `{name}`\n\nHelp.\n\n```{info}\n{body}```\n"
    (found,) = scan_definitions(source, origin="doc.md")
    return found


class TestBuildLanguage:
    def test_shell_languages(self):
        config = RunConfig(shell="/bin/zsh")

        def interpreter(tag):
            return build_language(definition("true\n", tag), config).interpreter

        assert interpreter("bash") == "bash"
        assert interpreter("sh") == "sh"
        assert interpreter("shell") == "/bin/zsh"

    def test_default_language(self):
        language = build_language(definition("true\n", ""), RunConfig())
        assert isinstance(language, ShellLanguage)
        assert language.interpreter == "bash"

        language = build_language(
            definition("print(1)\n", ""), RunConfig(default_language="python")
        )
        assert isinstance(language, PythonLanguage)

    def test_other_languages(self):
        assert isinstance(
            build_language(definition("print(1)\n", "python"), RunConfig()),
            PythonLanguage,
        )
        assert isinstance(
            build_language(definition("console.log(1)\n", "node"), RunConfig()),
            NodeLanguage,
        )

    def test_unknown_language(self):
        with pytest.raises(UnknownLanguageError, match="doc.md:5"):
            build_language(definition("x\n", "cobol"), RunConfig())

    def test_docker_image(self):
        language = build_language(
            definition("true\n", "sh image=alpine"), RunConfig(docker="podman")
        )
        assert isinstance(language, DockerWrapped)
        assert language.image == "alpine"
        assert language.docker == "podman"
        assert isinstance(language.inner, ShellLanguage)

    def test_unparsable_shell_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING, logger="commandsmd"):
            language = build_language(definition("if true; then\n"), RunConfig())
        assert isinstance(language, ShellLanguage)
        assert language.analysis is None
        assert language.parameters() == []
        assert "cannot analyze task" in caplog.text

    def test_unparsable_shell_strict(self):
        with pytest.raises(ShellSyntaxError):
            build_language(definition("if true; then\n"), RunConfig(strict=True))

    def test_unsupported_shell_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING, logger="commandsmd"):
            language = build_language(definition("echo $[1 + 2]\n"), RunConfig())
        assert language.analysis is None
        assert "unsupported shell syntax" in caplog.text

        with pytest.raises(UnsupportedSyntaxError):
            build_language(definition("echo $[1 + 2]\n"), RunConfig(strict=True))

    def test_case_body_keeps_its_options(self):
        body = 'case "$1" in\n  up) echo "${TARGET:-prod}" ;;\nesac\n'
        language = build_language(definition(body), RunConfig())
        parameters = {p.name: p.default for p in language.parameters()}
        assert parameters == {"TARGET": LiteralValue("prod")}


class TestShellLanguage:
    BODY = "export TOKEN\n: ${REGION:=eu}\nOUT=$(date)\necho $TARGET\n"

    def language(self):
        return build_language(definition(self.BODY, name="deploy"), RunConfig())

    def test_parameters(self):
        parameters = {p.name: p for p in self.language().parameters()}
        assert set(parameters) == {"REGION", "OUT", "TARGET"}
        assert parameters["REGION"].default == LiteralValue("eu")
        assert parameters["OUT"].default == ExpressionValue("$(date)")
        assert parameters["TARGET"].default == NO_DEFAULT
        assert "eu" in parameters["REGION"].help
        assert "$(date)" in parameters["OUT"].help
        assert parameters["TARGET"].help == "falls back to $TARGET"

    def test_environment(self):
        assert self.language().environment == ["TOKEN"]

    def test_check_invocation(self):
        invocation = self.language().check_invocation()
        assert invocation.argv == ["bash", "-n", "-c", self.BODY]

    def test_exec_invocation(self):
        environ = {"TOKEN": "t", "REGION": "us", "HOME": "/root"}
        invocation = self.language().exec_invocation(
            {"REGION": "ap", "TARGET": "prod"}, ["a", "b"], environ
        )
        argv = invocation.argv
        assert argv[:2] == ["bash", "-c"]
        assert argv[3:] == ["deploy", "a", "b"]
        assert ": ${REGION:=ap}" in argv[2]
        assert "echo ${TARGET:=prod}" in argv[2]
        assert invocation.env == {"TOKEN": "t", "HOME": "/root"}

    def test_missing_export(self):
        with pytest.raises(MissingEnvironmentError, match="TOKEN"):
            self.language().exec_invocation({}, [], {"TOKEN": ""})

    def test_opaque_shell(self):
        language = ShellLanguage("task", "sh", "echo $1\n")
        invocation = language.exec_invocation({}, ["x"], {})
        assert invocation.argv == ["sh", "-c", "echo $1\n", "task", "x"]
        assert invocation.env is None


def test_python_invocations():
    language = PythonLanguage("print(1)\n")
    assert language.check_invocation().argv == [
        "python3",
        "-c",
        "import ast, sys; ast.parse(sys.argv[1])",
        "print(1)\n",
    ]
    assert language.exec_invocation({}, ["x"], {}).argv == [
        "python3",
        "-c",
        "print(1)\n",
        "x",
    ]
    assert language.parameters() == []


def test_node_invocations():
    language = NodeLanguage("console.log(1)\n")
    assert language.check_invocation().argv[-2:] == ["--", "console.log(1)\n"]
    assert language.exec_invocation({}, ["x"], {}).argv == [
        "node",
        "--eval",
        "console.log(1)\n",
        "--",
        "x",
    ]


class TestDockerWrapped:
    def test_wraps_invocations(self):
        inner = build_language(
            definition("export TOKEN\necho hi\n", name="hello"), RunConfig()
        )
        language = DockerWrapped(inner, "alpine:3")
        with patch("commandsmd.languages.shutil.which", return_value="/usr/bin/docker"):
            check = language.check_invocation()
            run = language.exec_invocation({}, ["x"], {"TOKEN": "t"})

        prefix = ["/usr/bin/docker", "run", "--rm", "-i", "--env", "TOKEN", "alpine:3"]
        assert check.argv[: len(prefix)] == prefix
        assert check.argv[len(prefix) :] == inner.check_invocation().argv
        assert run.argv[len(prefix) :][:2] == ["bash", "-c"]
        assert run.argv[-2:] == ["hello", "x"]
        assert language.parameters() == inner.parameters()

    def test_missing_docker(self):
        language = DockerWrapped(PythonLanguage("pass\n"), "python:3")
        with patch("commandsmd.languages.shutil.which", return_value=None):
            with pytest.raises(ExecutableNotFoundError, match="docker"):
                language.check_invocation()
