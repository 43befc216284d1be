"""Turn the commands documented in a Markdown file into a command-line tool."""

__version__ = "2026.10.1"

from .errors import (
    CommandsMdError,
    ShellSyntaxError,
    UnsupportedSyntaxError,
    UnknownLocalError,
    UnsupportedOverrideError,
)
from .info_string import parse_info
from .model import (
    NO_DEFAULT,
    CommandDefinition,
    ExpressionValue,
    LiteralValue,
    NoDefault,
    ShellValue,
)
from .scanner import scan_definitions
from .shell import ShellCommand, analyze_shell

__all__ = [
    "__version__",
    "CommandsMdError",
    "ShellSyntaxError",
    "UnsupportedSyntaxError",
    "UnknownLocalError",
    "UnsupportedOverrideError",
    "parse_info",
    "NO_DEFAULT",
    "CommandDefinition",
    "ExpressionValue",
    "LiteralValue",
    "NoDefault",
    "ShellValue",
    "scan_definitions",
    "ShellCommand",
    "analyze_shell",
]
