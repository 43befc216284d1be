"""Find command definitions in a Markdown document.

A command is a heading whose only content is an inline code span (the command
name), followed by a fenced code block (its body). A thematic break or another
heading in between cancels the pairing.
"""

from typing import List, Optional

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

from .model import CommandDefinition


def _markdown() -> MarkdownIt:
    return MarkdownIt("commonmark").enable(["table", "strikethrough"])


def _line_starts(source: str) -> List[int]:
    starts = [0]
    starts.extend(i + 1 for i, char in enumerate(source) if char == "\n")
    return starts


def _line_end(source: str, starts: List[int], line: int) -> int:
    """Offset of the newline ending ``line``, or the end of the buffer."""
    if line + 1 < len(starts):
        return starts[line + 1] - 1
    return len(source)


def _heading_name(node: SyntaxTreeNode) -> Optional[str]:
    """The command name when the heading holds exactly one code span."""
    if len(node.children) != 1:
        return None
    inline = node.children[0]
    if len(inline.children) != 1:
        return None
    span = inline.children[0]
    if span.type != "code_inline":
        return None
    return span.content


def scan_definitions(
    source: str, origin: Optional[str] = None
) -> List[CommandDefinition]:
    """Scan ``source`` for heading/code block pairs.

    Unpaired headings and code blocks are ignored; this never fails on
    malformed pairings.

    Args:
        source: Markdown text
        origin: Where the text came from, kept for diagnostics

    Returns:
        Definitions in document order
    """
    tree = SyntaxTreeNode(_markdown().parse(source))
    starts = _line_starts(source)

    definitions: List[CommandDefinition] = []
    pending_heading: Optional[SyntaxTreeNode] = None
    pending_name: Optional[str] = None

    for node in tree.walk():
        if node.type == "hr":
            pending_heading, pending_name = None, None
        elif node.type == "heading":
            pending_heading, pending_name = None, None
            name = _heading_name(node)
            if name:
                pending_heading, pending_name = node, name
        elif node.type == "fence":
            if pending_heading is not None and pending_name is not None:
                definitions.append(
                    _definition(
                        source, starts, pending_name, pending_heading, node, origin
                    )
                )
            pending_heading, pending_name = None, None

    return definitions


def _definition(
    source: str,
    starts: List[int],
    name: str,
    heading: SyntaxTreeNode,
    fence: SyntaxTreeNode,
    origin: Optional[str],
) -> CommandDefinition:
    assert heading.map is not None and fence.map is not None
    heading_first, heading_next = heading.map
    fence_first, fence_next = fence.map

    heading_start = starts[heading_first]
    while heading_start > 0 and source[heading_start] != "\n":
        heading_start -= 1

    # Setext headings span two lines; the underline belongs to the heading.
    heading_stop = _line_end(source, starts, heading_next - 1)
    help_start = heading_stop + 1

    help_stop = starts[fence_first]
    while help_stop > help_start:
        help_stop -= 1
        if source[help_stop] == "\n":
            break

    declaration_stop = _line_end(source, starts, max(fence_next - 1, fence_first))

    return CommandDefinition(
        name=name,
        source=source,
        info=fence.info.strip(),
        body=fence.content,
        heading_start=heading_start,
        heading_stop=heading_stop,
        help_start=help_start,
        help_stop=help_stop,
        declaration_start=help_stop,
        declaration_stop=declaration_stop,
        origin=origin,
    )
