"""Shared Rich logging and console utilities."""

from __future__ import annotations

import io
import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown


def configure_logging(verbose: bool = False, console: Optional[Console] = None):
    """Send log records to stderr through Rich."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger("commandsmd")
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


def render_markdown(text: str, width: int = 80) -> str:
    """Render Markdown for a terminal and return it as plain text."""
    buffer = io.StringIO()
    console = Console(file=buffer, width=width, color_system=None, highlight=False)
    console.print(Markdown(text))
    return buffer.getvalue()
