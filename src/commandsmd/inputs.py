"""Reading the input document from a file, stdin or a URL."""

import pathlib
import sys
from dataclasses import dataclass
from typing import Optional, TextIO, Union

import httpx

from .errors import InputError

STDIN = "-"
SEARCH_PREFIX = ".../"


@dataclass(frozen=True)
class Document:
    text: str
    origin: str


def up_where(initial_dir: Union[str, pathlib.Path], marker: str) -> pathlib.Path:
    """Find the closest directory containing ``marker``, from ``initial_dir`` up."""
    initial_dir = pathlib.Path(initial_dir)
    directory = initial_dir
    while True:
        if (directory / marker).exists():
            return directory
        if directory.parent == directory:
            raise InputError(
                f"couldn't find {marker} in any directory between "
                f"{directory} and {initial_dir}"
            )
        directory = directory.parent


def fetch_url(url: str, timeout: float = 30.0) -> str:
    """Download a document."""
    try:
        response = httpx.get(url, follow_redirects=True, timeout=timeout)
        response.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise InputError(f"{url}: not a file, and fetching it failed: {e}") from e
    return response.text


def read_input(
    path: str,
    cwd: Optional[pathlib.Path] = None,
    stdin: Optional[TextIO] = None,
) -> Document:
    """Read the document named by ``path``.

    ``-`` reads stdin, ``.../NAME`` looks for NAME in ``cwd`` and its parents,
    an existing path is read from disk and anything else is fetched as a URL.
    """
    if path == STDIN:
        return Document((stdin or sys.stdin).read(), "<stdin>")

    cwd = cwd or pathlib.Path.cwd()
    if path.startswith(SEARCH_PREFIX):
        marker = path[len(SEARCH_PREFIX) :]
        file_path = up_where(cwd, marker) / marker
    else:
        file_path = cwd / path

    if file_path.exists():
        try:
            return Document(file_path.read_text(encoding="utf-8"), str(file_path))
        except OSError as e:
            raise InputError(f"{file_path}: {e}") from e

    return Document(fetch_url(path), path)
