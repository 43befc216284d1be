"""Run configuration."""

import os
import pathlib
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from . import __version__

DEFAULT_LANGUAGE = "bash"


@dataclass
class RunConfig:
    """Configuration for loading and running a document's commands."""

    default_language: str = DEFAULT_LANGUAGE
    shell: str = "sh"
    docker: str = "docker"
    build_id: str = __version__
    strict: bool = False
    verbose: bool = False
    working_directory: Optional[pathlib.Path] = None

    @classmethod
    def from_environ(
        cls, environ: Optional[Mapping[str, str]] = None, **kwargs: Any
    ) -> "RunConfig":
        """Create a config from the process environment and explicit settings.

        ``None`` values in ``kwargs`` are ignored so CLI options that were not
        given fall through to the defaults.
        """
        if environ is None:
            environ = os.environ

        settings: dict[str, Any] = {}
        if environ.get("SHELL"):
            settings["shell"] = environ["SHELL"]
        # Under `bazel run` the process starts in the runfiles tree.
        if environ.get("BUILD_WORKSPACE_DIRECTORY") and environ.get(
            "BUILD_WORKING_DIRECTORY"
        ):
            settings["working_directory"] = pathlib.Path(
                environ["BUILD_WORKING_DIRECTORY"]
            )

        settings.update({k: v for k, v in kwargs.items() if v is not None})
        return cls(**settings)
