"""Exceptions raised by commandsmd."""

from typing import Optional


class CommandsMdError(Exception):
    """Base class for commandsmd errors."""


class ShellSyntaxError(ValueError, CommandsMdError):
    """Shell text could not be parsed."""

    def __init__(self, message: str, position: Optional[int] = None):
        self.message = message
        self.position = position
        if position is not None:
            message = f"{message} (at offset {position})"
        super().__init__(message)


class UnsupportedSyntaxError(CommandsMdError):
    """Valid shell text uses a construct the analyzer cannot model."""

    def __init__(self, message: str, position: Optional[int] = None):
        self.message = message
        self.position = position
        if position is not None:
            message = f"{message} (at offset {position})"
        super().__init__(message)


class UnknownLocalError(LookupError, CommandsMdError):
    """An override names a variable that is not a local of the script."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"no local variable named {name!r}")


class UnsupportedOverrideError(ValueError, CommandsMdError):
    """An override targets a variable whose default is a shell expression."""

    def __init__(self, name: str, expression: str):
        self.name = name
        self.expression = expression
        super().__init__(
            f"cannot override {name!r}: its default is the expression {expression!r}"
        )


class UnknownLanguageError(ValueError, CommandsMdError):
    """A code block declares a language commandsmd cannot run."""

    def __init__(self, language: str, location: Optional[str] = None):
        self.language = language
        message = f"unknown language: {language!r}"
        if location:
            message = f"{location}: {message}"
        super().__init__(message)


class MissingEnvironmentError(CommandsMdError):
    """A required environment variable is unset."""

    def __init__(self, names: list[str]):
        self.names = names
        super().__init__(f"environment variable not set: {', '.join(names)}")


class MissingOptionError(ValueError, CommandsMdError):
    """A local without a default received no value."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"option not given: --{name}")


class ExecutableNotFoundError(CommandsMdError):
    """An interpreter or the docker binary could not be found."""

    def __init__(self, executable: str):
        self.executable = executable
        super().__init__(f"executable not found: {executable}")


class InputError(CommandsMdError):
    """The input document could not be read."""
