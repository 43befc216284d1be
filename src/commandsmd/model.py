"""Data types shared by the scanner, the shell analyzer and the runner."""

from dataclasses import dataclass
from typing import Dict, Optional, Union

from .info_string import parse_info


@dataclass(frozen=True)
class NoDefault:
    """The variable has no default and must be supplied."""

    def __repr__(self) -> str:
        return "NoDefault()"


@dataclass(frozen=True)
class LiteralValue:
    """A default that is a plain string, with shell quoting removed."""

    text: str


@dataclass(frozen=True)
class ExpressionValue:
    """A default computed by the shell at run time, kept as source text."""

    text: str


ShellValue = Union[NoDefault, LiteralValue, ExpressionValue]

NO_DEFAULT = NoDefault()


@dataclass(frozen=True)
class CommandDefinition:
    """A heading/code block pair found in a document.

    Offsets index into ``source``. The heading span starts at the newline
    preceding the heading (or 0); the help span sits between the heading and
    the opening fence; the declaration span runs from the end of the help span
    to the end of the closing fence line.
    """

    name: str
    source: str
    info: str
    body: str
    heading_start: int
    heading_stop: int
    help_start: int
    help_stop: int
    declaration_start: int
    declaration_stop: int
    origin: Optional[str] = None

    @property
    def help(self) -> str:
        return self.source[self.help_start : self.help_stop].strip()

    @property
    def definition(self) -> str:
        """Heading, help text and code block as written."""
        return self.source[self.heading_start : self.declaration_stop]

    @property
    def declaration(self) -> str:
        return self.source[self.declaration_start : self.declaration_stop]

    @property
    def language(self) -> str:
        return parse_info(self.info)[0]

    @property
    def fields(self) -> Dict[str, str]:
        return parse_info(self.info)[1]

    @property
    def line(self) -> int:
        """1-based line number of the opening fence."""
        fence = self.declaration_start
        if fence < len(self.source) and self.source[fence] == "\n":
            fence += 1
        return self.source.count("\n", 0, fence) + 1

    @property
    def location(self) -> str:
        return f"{self.origin or '<input>'}:{self.line}"
