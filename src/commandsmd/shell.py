"""Static analysis and rendering of shell command bodies.

Variables a script reads are split into two groups:

* exports: names declared with ``export``; they must come from the
  environment of the caller.
* locals: names assigned or expanded at the top level of the script; they
  become options, and a chosen value can be written back into the script as
  its new default.

Function bodies are never inspected. Parsing is done with bashlex, one
top-level statement at a time, into a flat arena of nodes that are addressed
by index. Constructs bashlex does not implement (``case``, ``[[ ]]`` and
arithmetic) are first rewritten into same-length stand-ins it does, so every
offset still points into the original text.
"""

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

import bashlex
import bashlex.ast
import bashlex.errors

from .errors import (
    ShellSyntaxError,
    UnknownLocalError,
    UnsupportedOverrideError,
    UnsupportedSyntaxError,
)
from .model import NO_DEFAULT, ExpressionValue, LiteralValue, NoDefault, ShellValue

logger = logging.getLogger(__name__)

_ASSIGNMENT = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)(\+?)=(.*)", re.DOTALL)
_PARAMETER = re.compile(r"([#!]?)([A-Za-z][A-Za-z0-9_]*)(.*)", re.DOTALL)
_PARAMETER_NAME = re.compile(r"[#!]?(?:[A-Za-z0-9_]+|[@*?$!#-])?")
_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_DEFAULT_OPERATOR = re.compile(r"(:?[-=])(.*)", re.DOTALL)
_SAFE_VALUE = re.compile(r"[A-Za-z0-9_./:@%+,=-]+")
_TIME_POSIX = re.compile(r"[ \t]+-p(?=[ \t\n;&|]|$)")
_ARITHMETIC_FOR = re.compile(r"[ \t]*\(\(")
_HEREDOC_DELIMITER = re.compile(r"[^\s;&|<>()]*")

_OPAQUE_DECLARATIONS = {"declare", "typeset", "local", "readonly"}
_COMMAND_PREFIXES = {"!", "{", "do", "elif", "else", "if", "then", "until", "while"}
_OPERATORS = ";&|()<>"


@dataclass(frozen=True)
class ShellNode:
    """One node of a parsed script, with offsets into the script text."""

    index: int
    kind: str
    start: int
    end: int
    children: Tuple[int, ...] = ()
    word: Optional[str] = None
    value: Optional[str] = None


@dataclass(frozen=True)
class ShellScript:
    """A parsed script: its text plus a pre-order arena of nodes."""

    text: str
    nodes: Tuple[ShellNode, ...]
    roots: Tuple[int, ...]

    @classmethod
    def parse(cls, text: str) -> "ShellScript":
        nodes: List[Optional[ShellNode]] = []
        roots = [_flatten(tree, nodes, text) for tree in _parse_statements(text)]
        return cls(text, tuple(n for n in nodes if n is not None), tuple(roots))

    def source(self, index: int) -> str:
        node = self.nodes[index]
        return self.text[node.start : node.end]

    def print(self, edits: Optional[Mapping[int, str]] = None) -> str:
        """Return the script text with the nodes in ``edits`` replaced."""
        if not edits:
            return self.text
        pieces = []
        cursor = 0
        for index in sorted(edits, key=lambda i: self.nodes[i].start):
            node = self.nodes[index]
            if node.start < cursor:
                raise ValueError(f"overlapping edit at offset {node.start}")
            pieces.append(self.text[cursor : node.start])
            pieces.append(edits[index])
            cursor = node.end
        pieces.append(self.text[cursor:])
        return "".join(pieces)


def _skip_separators(text: str, index: int) -> int:
    """Skip blank space, newlines and comment lines between statements."""
    while index < len(text):
        char = text[index]
        if char in " \t\r\n;":
            index += 1
        elif char == "#":
            newline = text.find("\n", index)
            index = len(text) if newline == -1 else newline + 1
        else:
            break
    return index


def _closing_brace(text: str, start: int) -> int:
    """Index of the ``}`` matching the ``{`` at ``start``, or -1."""
    depth = 0
    i = start
    while i < len(text):
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char in "'\"":
            close = text.find(char, i + 1)
            while char == '"' and close != -1 and text[close - 1] == "\\":
                close = text.find(char, close + 1)
            if close == -1:
                return -1
            i = close + 1
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


class _Rewriter:
    """Rewrite shell text bashlex cannot parse into text it can.

    Every replacement is as long as the text it replaces:

    * ``case WORD in PATTERN) LIST ;; ... esac`` becomes a brace group that
      runs ``: WORD`` and then each branch body
    * ``[[ EXPR ]]`` becomes ``:`` followed by the words of the expression
    * ``(( EXPR ))`` and ``$(( EXPR ))`` quote the expression
    * ``for (( ... ))`` loops over a placeholder word
    * ``select`` becomes ``for`` and the ``time`` keyword is blanked
    * quoted here-document delimiters lose their quotes

    Case patterns are blanked, so expansions inside them are not seen.
    """

    def __init__(self, text: str):
        self.text = text
        self.chars = list(text)
        self.heredocs: List[Tuple[str, bool]] = []

    def rewrite(self) -> str:
        self._commands(0)
        return "".join(self.chars)

    def _blank(self, start: int, end: int, replacement: str = ""):
        for i in range(start, end):
            offset = i - start
            self.chars[i] = replacement[offset] if offset < len(replacement) else " "

    def _commands(
        self, i: int, closer: Optional[str] = None, in_case: bool = False
    ) -> int:
        """Scan a command list from ``i`` and return where it stops.

        The list stops at ``closer``, at the end of the text, or, inside a
        case branch, at ``;;``, ``;&`` or ``esac``.
        """
        text = self.text
        command_start = True
        while i < len(text):
            char = text[i]
            if char == closer:
                return i
            if char in " \t":
                i += 1
            elif char == "\n":
                i = self._skip_heredocs(i + 1)
                command_start = True
            elif char == "#":
                newline = text.find("\n", i)
                i = len(text) if newline == -1 else newline
            elif in_case and text.startswith((";;", ";&"), i):
                return i
            elif char == "(" and command_start and text.startswith("((", i):
                i = self._arithmetic_command(i)
                command_start = False
            elif char == "(":
                i = self._commands(i + 1, ")") + 1
                command_start = True
            elif text.startswith("<<", i) and not text.startswith("<<<", i):
                i = self._heredoc_operator(i)
                command_start = False
            elif char in _OPERATORS:
                command_start = char in ";&|"
                i += 1
            else:
                start = i
                i = self._word(i, closer)
                word = text[start:i]
                if not command_start:
                    command_start = word == "{"
                    continue
                if in_case and word == "esac":
                    return start
                i, command_start = self._keyword(word, start, i)
        return i

    def _keyword(self, word: str, start: int, end: int) -> Tuple[int, bool]:
        """Handle a word in command position; return the next index and
        whether a command may follow."""
        if word == "case":
            return self._case(start), False
        if word == "[[":
            return self._conditional(start), False
        if word == "select":
            self._blank(start, end, "for")
            return end, False
        if word == "for":
            return self._arithmetic_for(end), False
        if word == "time":
            posix = _TIME_POSIX.match(self.text, end)
            end = posix.end() if posix else end
            self._blank(start, end)
            return end, True
        return end, word in _COMMAND_PREFIXES

    def _word(self, i: int, closer: Optional[str] = None) -> int:
        text = self.text
        while i < len(text):
            char = text[i]
            if char in " \t\n" or char in _OPERATORS or char == closer:
                return i
            i = self._word_part(i)
        return i

    def _word_part(self, i: int) -> int:
        text = self.text
        char = text[i]
        if char == "\\":
            return i + 2
        if char == "'":
            close = text.find("'", i + 1)
            return len(text) if close == -1 else close + 1
        if char == '"':
            return self._double_quoted(i + 1)
        if char == "`":
            return self._commands(i + 1, "`") + 1
        if char == "$":
            return self._dollar(i)
        return i + 1

    def _double_quoted(self, i: int) -> int:
        text = self.text
        while i < len(text):
            char = text[i]
            if char == '"':
                return i + 1
            if char == "\\":
                i += 2
            elif char == "`":
                i = self._commands(i + 1, "`") + 1
            elif char == "$":
                i = self._dollar(i)
            else:
                i += 1
        return i

    def _dollar(self, i: int) -> int:
        text = self.text
        if text.startswith("$((", i):
            return self._arithmetic_expansion(i)
        if text.startswith("$(", i):
            return self._commands(i + 2, ")") + 1
        if text.startswith("${", i):
            close = _closing_brace(text, i + 1)
            return len(text) if close == -1 else close + 1
        return i + 1

    def _arithmetic_end(self, i: int) -> int:
        """Index of the ``))`` closing an expression that starts at ``i``."""
        text = self.text
        depth = 0
        while i < len(text):
            char = text[i]
            if char == "(":
                depth += 1
            elif char == ")":
                if depth == 0:
                    return i if text.startswith("))", i) else -1
                depth -= 1
            i += 1
        return -1

    def _quote_expression(self, start: int, end: int) -> bool:
        """Quote ``text[start:end]``, whose delimiters are one character
        wider on each side. False when the expression holds a double quote."""
        if '"' in self.text[start:end]:
            return False
        i = start
        while i < end:
            i = self._dollar(i) if self.text[i] == "$" else i + 1
        self.chars[start - 1] = '"'
        self.chars[end] = '"'
        return True

    def _arithmetic_expansion(self, i: int) -> int:
        end = self._arithmetic_end(i + 3)
        if end == -1:
            return i + 1
        self._quote_expression(i + 3, end)
        return end + 2

    def _arithmetic_command(self, i: int) -> int:
        end = self._arithmetic_end(i + 2)
        if end == -1:
            return i + 2
        if self._quote_expression(i + 2, end):
            self.chars[i] = ":"
            self.chars[end + 1] = " "
        return end + 2

    def _arithmetic_for(self, end: int) -> int:
        header = _ARITHMETIC_FOR.match(self.text, end)
        if not header:
            return end
        close = self._arithmetic_end(header.end())
        if close == -1:
            return header.end()
        start = header.end() - 2
        self._blank(start, close + 2, "_ in" if start > end else " _ in")
        return close + 2

    def _conditional(self, start: int) -> int:
        text = self.text
        self._blank(start, start + 2, ":")
        i = start + 2
        while i < len(text):
            if text[i] in " \t\n" or text[i] in _OPERATORS:
                self.chars[i] = " "
                i += 1
                continue
            word_start = i
            i = self._word(i)
            if text[word_start:i] == "]]":
                self._blank(word_start, i)
                break
        return i

    def _case(self, start: int) -> int:
        text = self.text
        self._blank(start, start + 4, "{ :")
        i = self._skip_blank(start + 4)
        i = self._skip_blank(self._word(i))
        if not text.startswith("in", i):
            return i
        self._blank(i, i + 2, ";")
        i += 2
        while True:
            i = self._skip_blank(i)
            if i >= len(text):
                return i
            word_end = self._word(i)
            if text[i:word_end] == "esac":
                self._blank(i, word_end, "}")
                return word_end
            close = self._pattern_end(i)
            if close == -1:
                return len(text)
            self._blank(i, close + 1)
            i = self._commands(close + 1, in_case=True)
            for terminator in (";;&", ";;", ";&"):
                if text.startswith(terminator, i):
                    self._blank(i, i + len(terminator), "\n")
                    i += len(terminator)
                    break

    def _pattern_end(self, i: int) -> int:
        text = self.text
        depth = 0
        if text.startswith("(", i):
            i += 1
        while i < len(text):
            char = text[i]
            if char == "\n":
                return -1
            if char == "(":
                depth += 1
            elif char == ")":
                if depth == 0:
                    return i
                depth -= 1
            else:
                i = self._word_part(i)
                continue
            i += 1
        return -1

    def _skip_blank(self, i: int) -> int:
        text = self.text
        while i < len(text):
            if text[i] in " \t\n":
                i += 1
            elif text[i] == "#":
                newline = text.find("\n", i)
                i = len(text) if newline == -1 else newline
            else:
                break
        return i

    def _heredoc_operator(self, i: int) -> int:
        text = self.text
        i += 2
        strip = text.startswith("-", i)
        if strip:
            i += 1
        while i < len(text) and text[i] in " \t":
            i += 1
        start = i
        i = self._word(i)
        word = text[start:i]
        delimiter = re.sub(r"[\"'\\]", "", word)
        # bashlex compares lines against the delimiter with its quotes
        self._blank(start, i, delimiter)
        self.heredocs.append((delimiter, strip))
        return i

    def _skip_heredocs(self, i: int) -> int:
        text = self.text
        while self.heredocs:
            delimiter, strip = self.heredocs.pop(0)
            while i < len(text):
                newline = text.find("\n", i)
                end = len(text) if newline == -1 else newline + 1
                line = text[i:end].rstrip("\n")
                i = end
                if (line.lstrip("\t") if strip else line) == delimiter:
                    break
        return i


class _EndFinder(bashlex.ast.nodevisitor):
    """Find where a statement really ends; here-documents extend past it."""

    def __init__(self):
        self.end = -1

    def visitheredoc(self, node, value):
        self.end = max(self.end, node.pos[1])


def _parse_statements(text: str) -> List[bashlex.ast.node]:
    trees = []
    source = text
    rewritten = False
    index = _skip_separators(text, 0)
    while index < len(text):
        try:
            tree = bashlex.parsesingle(source[index:])
        except (bashlex.errors.ParsingError, NotImplementedError, AssertionError) as e:
            if not rewritten:
                rewritten = True
                source = _Rewriter(text).rewrite()
                if source != text:
                    continue
            if isinstance(e, bashlex.errors.ParsingError):
                raise ShellSyntaxError(e.message, index + e.position) from e
            raise UnsupportedSyntaxError(f"unsupported shell syntax: {e}", index) from e
        if tree is None:
            break

        bashlex.ast.posshifter(index).visit(tree)
        trees.append(tree)

        finder = _EndFinder()
        finder.visit(tree)
        end = max(tree.pos[1], finder.end)
        if end <= index:
            raise ShellSyntaxError("parser made no progress", index)
        index = _skip_separators(source, end)
    return trees


def _node_children(node: bashlex.ast.node, text: str) -> List[bashlex.ast.node]:
    kind = node.kind
    if kind == "compound":
        return list(node.list) + list(node.redirects)
    if kind == "redirect":
        children = []
        if isinstance(node.output, bashlex.ast.node):
            children.append(node.output)
        if getattr(node, "heredoc", None) is not None:
            delimiter = _HEREDOC_DELIMITER.match(text, node.output.pos[0]).group()
            # a quoted delimiter keeps the body literal
            if not any(c in delimiter for c in "'\"\\"):
                children.append(node.heredoc)
        return children
    if kind in ("commandsubstitution", "processsubstitution"):
        return [node.command]
    return list(getattr(node, "parts", []))


def _expansions(text: str, start: int, end: int, quoting: bool = True) -> Iterator:
    """Yield the spans of ``$NAME`` and ``${...}`` expansions in a region.

    Without ``quoting``, as in here-document bodies, quotes are plain text.
    """
    i = start
    double = False
    while i < end:
        char = text[i]
        if char == "\\":
            i += 2
        elif quoting and char == '"':
            double = not double
            i += 1
        elif quoting and char == "'" and not double:
            close = text.find("'", i + 1, end)
            i = end if close == -1 else close + 1
        elif char == "$" and text.startswith("{", i + 1):
            close = _closing_brace(text, i + 1)
            if close == -1 or close >= end:
                return
            yield i, close + 1
            i = close + 1
        elif char == "$":
            name = _NAME.match(text, i + 1, end)
            if name:
                yield i, name.end()
                i = name.end()
            else:
                i += 1
        else:
            i += 1


def _parameter(text: str, start: int, end: int, nodes: List) -> int:
    """Append a parameter expansion and the ones nested in it."""
    index = len(nodes)
    nodes.append(None)
    children: Tuple[int, ...] = ()
    if text.startswith("${", start) and text[end - 1] == "}":
        value = text[start + 2 : end - 1]
        name = _PARAMETER_NAME.match(text, start + 2)
        children = tuple(
            _parameter(text, s, e, nodes)
            for s, e in _expansions(text, name.end(), end - 1)
        )
    else:
        value = text[start + 1 : end]
    nodes[index] = ShellNode(
        index=index,
        kind="parameter",
        start=start,
        end=end,
        children=children,
        value=value,
    )
    return index


def _flatten(
    tree: bashlex.ast.node, nodes: List[Optional[ShellNode]], text: str
) -> int:
    """Append ``tree`` to the arena in pre-order and return its index."""
    start, end = tree.pos
    if tree.kind == "parameter":
        # bashlex stops a braced expansion at its first closing brace
        if text.startswith("${", start):
            close = _closing_brace(text, start + 1)
            if close != -1:
                end = close + 1
        return _parameter(text, start, end, nodes)

    index = len(nodes)
    nodes.append(None)
    if tree.kind == "heredoc":
        children = tuple(
            _parameter(text, s, e, nodes)
            for s, e in _expansions(text, start, end, quoting=False)
        )
    else:
        children = tuple(
            _flatten(child, nodes, text) for child in _node_children(tree, text)
        )
    is_word = tree.kind in ("word", "assignment")
    nodes[index] = ShellNode(
        index=index,
        kind=tree.kind,
        start=start,
        end=end,
        children=children,
        word=tree.word if is_word else None,
    )
    return index


def _unquote(text: str) -> str:
    """Remove shell quoting from a word. Raises ValueError on open quotes."""
    result = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\" and i + 1 < len(text):
            result.append(text[i + 1])
            i += 2
        elif char == "'":
            close = text.find("'", i + 1)
            if close == -1:
                raise ValueError(f"unterminated single quote in {text!r}")
            result.append(text[i + 1 : close])
            i = close + 1
        elif char == '"':
            i += 1
            while i < len(text) and text[i] != '"':
                if text[i] == "\\" and i + 1 < len(text) and text[i + 1] in '\\"$`\n':
                    i += 1
                result.append(text[i])
                i += 1
            if i >= len(text):
                raise ValueError(f"unterminated double quote in {text!r}")
            i += 1
        else:
            result.append(char)
            i += 1
    return "".join(result)


def _open_quote(text: str) -> Optional[str]:
    """The quote character still open at the end of ``text``, if any."""
    quote = None
    escaped = False
    for char in text:
        if escaped:
            escaped = False
        elif quote == "'":
            if char == "'":
                quote = None
        elif char == "\\":
            escaped = True
        elif char == '"':
            quote = None if quote == '"' else '"'
        elif char == "'" and quote is None:
            quote = "'"
    return quote


def _is_dynamic(text: str) -> bool:
    """True when the word has a ``$`` or a backquote outside single quotes."""
    quote = None
    escaped = False
    for char in text:
        if escaped:
            escaped = False
        elif quote == "'":
            if char == "'":
                quote = None
        elif char == "\\":
            escaped = True
        elif char in "$`":
            return True
        elif char == '"':
            quote = None if quote == '"' else '"'
        elif char == "'" and quote is None:
            quote = "'"
    return False


def _classify_text(text: str) -> ShellValue:
    """Classify a raw default word. Raises ValueError when it is malformed."""
    if _is_dynamic(text):
        return ExpressionValue(text)
    return LiteralValue(_unquote(text))


def _assigned_value(raw_value: str, append: bool) -> ShellValue:
    if append or raw_value.startswith("~"):
        return ExpressionValue(raw_value)
    return _classify_text(raw_value)


def quote_value(value: str) -> str:
    """Quote ``value`` for use as a shell word, leaving safe text bare."""
    if _SAFE_VALUE.fullmatch(value):
        return value
    return '"' + re.sub(r'([\\"$`])', r"\\\1", value) + '"'


@dataclass
class _Analysis:
    exports: Dict[str, ShellValue] = field(default_factory=dict)
    locals: Dict[str, ShellValue] = field(default_factory=dict)
    assignment_sites: Dict[str, int] = field(default_factory=dict)
    reference_sites: Dict[str, int] = field(default_factory=dict)
    discovered: Dict[str, ShellValue] = field(default_factory=dict)

    def sites(self) -> Dict[str, int]:
        sites = {}
        for name in self.locals:
            if name in self.assignment_sites:
                sites[name] = self.assignment_sites[name]
            else:
                sites[name] = self.reference_sites[name]
        return sites


class _Analyzer:
    def __init__(self, script: ShellScript):
        self.script = script
        self.result = _Analysis()

    def run(self) -> _Analysis:
        for root in self.script.roots:
            self._visit(root)
        self._promote()
        return self.result

    def _visit(self, index: int):
        node = self.script.nodes[index]
        if node.kind == "function":
            return
        if node.kind == "command":
            builtin = self._command_name(node)
            if builtin == "export":
                self._record_exports(node)
                return
            if builtin in _OPAQUE_DECLARATIONS:
                return
        elif node.kind == "assignment":
            self._record_assignment(node)
        elif node.kind == "parameter":
            self._record_reference(node)
        for child in node.children:
            if not self._single_quoted(node, self.script.nodes[child]):
                self._visit(child)

    def _single_quoted(self, parent: ShellNode, child: ShellNode) -> bool:
        """True for an expansion bashlex reported inside single quotes."""
        if child.kind != "parameter" or parent.kind not in ("word", "assignment"):
            return False
        return _open_quote(self.script.text[parent.start : child.start]) == "'"

    def _command_name(self, node: ShellNode) -> Optional[str]:
        for child in node.children:
            part = self.script.nodes[child]
            if part.kind == "word":
                return part.word
        return None

    def _record_assignment(self, node: ShellNode):
        match = _ASSIGNMENT.fullmatch(self.script.source(node.index))
        if not match:
            logger.warning("Ignoring malformed assignment %r", node.word)
            return
        name, append, raw_value = match.groups()
        try:
            value = _assigned_value(raw_value, bool(append))
        except ValueError as e:
            logger.warning("Ignoring assignment of %s: %s", name, e)
            return
        self.result.locals[name] = value
        self.result.assignment_sites[name] = node.index

    def _record_exports(self, node: ShellNode):
        words = [self.script.nodes[c] for c in node.children]
        words = [w for w in words if w.kind in ("word", "assignment")]
        first = next(i for i, w in enumerate(words) if w.kind == "word")
        for word in words[first + 1 :]:
            text = self.script.source(word.index)
            if text.startswith("-"):
                continue
            match = _ASSIGNMENT.fullmatch(text)
            if match:
                name, append, raw_value = match.groups()
                try:
                    self.result.exports[name] = _assigned_value(
                        raw_value, bool(append)
                    )
                except ValueError as e:
                    logger.warning("Ignoring export of %s: %s", name, e)
            elif re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", text):
                self.result.exports[text] = NO_DEFAULT
            else:
                logger.warning("Ignoring export of %r", text)

    def _record_reference(self, node: ShellNode):
        source = self.script.source(node.index)
        if source.startswith("${") and source.endswith("}"):
            inner = source[2:-1]
        else:
            inner = source[1:]
        match = _PARAMETER.fullmatch(inner)
        if not match:
            return
        prefix, name, rest = match.groups()
        self.result.reference_sites.setdefault(name, node.index)
        self.result.discovered.setdefault(name, NO_DEFAULT)

        # ${#NAME} and ${!NAME} take no default
        operator = None if prefix else _DEFAULT_OPERATOR.fullmatch(rest)
        if not operator or not isinstance(self.result.discovered[name], NoDefault):
            return
        try:
            self.result.discovered[name] = _classify_text(operator.group(2))
        except ValueError as e:
            logger.warning("Ignoring default of %s: %s", name, e)

    def _promote(self):
        result = self.result
        for name in result.reference_sites:
            if name in result.exports:
                continue
            current = result.locals.get(name)
            if current is None or isinstance(current, NoDefault):
                result.locals[name] = result.discovered[name]
        for name in result.exports:
            result.locals.pop(name, None)


def _analyze(script: ShellScript) -> _Analysis:
    return _Analyzer(script).run()


@dataclass(frozen=True)
class ShellCommand:
    """Exports and locals of a shell script, with where each local lives."""

    exports: Mapping[str, ShellValue]
    locals: Mapping[str, ShellValue]
    declaration_sites: Mapping[str, int]
    script: ShellScript

    @classmethod
    def parse(cls, text: str) -> "ShellCommand":
        script = ShellScript.parse(text)
        analysis = _analyze(script)
        return cls(
            exports=MappingProxyType(analysis.exports),
            locals=MappingProxyType(analysis.locals),
            declaration_sites=MappingProxyType(analysis.sites()),
            script=script,
        )

    @property
    def required_exports(self) -> List[str]:
        return [n for n, v in self.exports.items() if isinstance(v, NoDefault)]

    def print(self) -> str:
        return self.script.print()

    def render(self, overrides: Mapping[str, str]) -> str:
        """Return the script with each override written in as its default.

        Expansion sites become ``${NAME:=value}``, so a value already set in
        the environment still takes precedence; assignment sites become
        ``NAME=value``. The analyzed script is left untouched.

        Raises:
            UnknownLocalError: an override names no local of the script
            UnsupportedOverrideError: the local's default is an expression,
                or its site lies inside another overridden expansion
        """
        text = self.print()
        if not overrides:
            return text

        try:
            working = ShellScript.parse(text)
        except (ShellSyntaxError, UnsupportedSyntaxError) as e:
            raise ShellSyntaxError(
                f"reparsing printed script failed: {e.message}", e.position
            ) from e
        analysis = _analyze(working)
        sites = analysis.sites()

        edits: Dict[int, str] = {}
        names: Dict[int, str] = {}
        for name, value in overrides.items():
            site = sites.get(name)
            if site is None:
                raise UnknownLocalError(name)
            default = analysis.locals[name]
            if isinstance(default, ExpressionValue):
                raise UnsupportedOverrideError(name, default.text)
            if working.nodes[site].kind == "parameter":
                edits[site] = "${%s:=%s}" % (name, quote_value(value))
            else:
                edits[site] = f"{name}={quote_value(value)}"
            names[site] = name

        ordered = sorted(edits, key=lambda i: working.nodes[i].start)
        for outer, inner in zip(ordered, ordered[1:]):
            if working.nodes[inner].start < working.nodes[outer].end:
                raise UnsupportedOverrideError(names[inner], working.source(outer))
        return working.print(edits)


def analyze_shell(text: str) -> ShellCommand:
    """Parse and classify the variables of a shell script."""
    return ShellCommand.parse(text)
