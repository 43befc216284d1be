"""Parsing of fenced code block info strings."""

from typing import Dict, Tuple


def parse_info(info: str) -> Tuple[str, Dict[str, str]]:
    """Split an info string into its language tag and attribute fields.

    The info string is split on single spaces. The first token is the
    language tag; every other token is ``key=value`` or a bare ``key``, which
    maps to the empty string. Later duplicates overwrite earlier ones.

    Args:
        info: Raw info string, e.g. ``"bash group=release image=alpine"``

    Returns:
        Tuple of (language, fields)
    """
    language, *tokens = info.split(" ")
    fields: Dict[str, str] = {}
    for token in tokens:
        key, _, value = token.partition("=")
        fields[key] = value
    return language, fields
