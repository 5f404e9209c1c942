"""Canonicalize and validate generated Go source.

Formatting is whitespace-only: re-indentation by brace depth, blank line
normalization, and gofmt-style column alignment for struct fields and keyed
composite literal elements. Validation parses the result with tree-sitter and
rejects any ERROR or MISSING node, plus the unsupported-type sentinel.
"""

from __future__ import annotations

import re

from .model import UNSUPPORTED
from .parsing import first_error, node_pos, node_text, parse_go

_FIELD_RE = re.compile(r"^([A-Za-z_]\w*)\s+(\S.*)$")
_KEYED_RE = re.compile(r"^([A-Za-z_]\w*:)\s+(\S.*)$")
_METHOD_RE = re.compile(r"^([A-Za-z_]\w*)(\(.*)$")

_IFACE_INLINE = "interface{ "
# gofmt keeps a one-element interface on one line only up to this size.
_ONE_LINE_MAX = 30


class MalformedOutputError(Exception):
    """Generated text is not well-formed Go."""

    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


class _Line:
    """A formatted line with its block context (for alignment)."""

    def __init__(self, text: str, indent: int, block: int, kind: str, verbatim: bool):
        self.text: str = text
        self.indent: int = indent
        self.block: int = block
        self.kind: str = kind
        self.verbatim: bool = verbatim


def format_source(source: str) -> str:
    """Return canonical Go text; raise MalformedOutputError if invalid."""
    lines = _reindent(_expand_interfaces(source).split("\n"))
    _align(lines)
    text = _join(lines)
    validate(text)
    return text


def validate(source: str) -> None:
    """Raise MalformedOutputError unless source is syntactically valid Go."""
    idx = source.find(UNSUPPORTED)
    if idx >= 0:
        line = source.count("\n", 0, idx) + 1
        col = idx - (source.rfind("\n", 0, idx) + 1)
        raise MalformedOutputError("unsupported type in generated code", line, col)
    tree = parse_go(source)
    err = first_error(tree.root_node)
    if err is None:
        return
    line, col = node_pos(err)
    if err.is_missing:
        raise MalformedOutputError("missing " + err.type, line, col)
    snippet = node_text(err).split("\n")[0].strip()
    raise MalformedOutputError("syntax error near '" + snippet + "'", line, col)


# ============================================================
# SCANNING
# ============================================================


def _skip_quoted(line: str, i: int, quote: str) -> int:
    """Index just past the literal starting at line[i]."""
    i += 1
    while i < len(line):
        c = line[i]
        if c == "\\":
            i += 2
            continue
        if c == quote:
            return i + 1
        i += 1
    return i


def _scan(line: str, state: str) -> tuple[int, int, str]:
    """Scan one line for braces outside literals and comments.

    state is "" (code), "raw" (inside a backquoted string) or "comment"
    (inside /* */). Returns (net brace delta, leading closers, end state).
    """
    delta = 0
    leading = 0
    seen_code = False
    i = 0
    while i < len(line):
        c = line[i]
        if state == "raw":
            if c == "`":
                state = ""
            seen_code = True
            i += 1
            continue
        if state == "comment":
            if line.startswith("*/", i):
                state = ""
                i += 2
                continue
            i += 1
            continue
        if line.startswith("//", i):
            break
        if line.startswith("/*", i):
            state = "comment"
            i += 2
            continue
        if c == '"' or c == "'":
            i = _skip_quoted(line, i, c)
            seen_code = True
            continue
        if c == "`":
            state = "raw"
            seen_code = True
            i += 1
            continue
        if c == "{":
            delta += 1
        elif c == "}":
            delta -= 1
            if not seen_code:
                leading += 1
        if not c.isspace() and c != "}":
            seen_code = True
        i += 1
    return delta, leading, state


def _block_kind(text: str) -> str:
    if text.endswith("struct {"):
        return "struct"
    if text.endswith("interface {"):
        return "interface"
    return "block"


# ============================================================
# PASSES
# ============================================================


def _expand_interfaces(text: str) -> str:
    """Break interface{ M } literals gofmt would not keep on one line.

    gofmt sizes the single element as 1 for the name plus its func type text
    (func(...) R); anything over _ONE_LINE_MAX or spanning lines is printed
    as a block. Inner literals are expanded first.
    """
    out: list[str] = []
    i = 0
    while True:
        start = text.find(_IFACE_INLINE, i)
        if start < 0:
            break
        open_brace = start + len(_IFACE_INLINE) - 2
        close = _matching_brace(text, open_brace)
        if close < 0:
            break
        inner = _expand_interfaces(text[open_brace + 1 : close].strip())
        out.append(text[i:start])
        if _fits_one_line(inner):
            out.append(_IFACE_INLINE + inner + " }")
        else:
            out.append("interface {\n" + inner + "\n}")
        i = close + 1
    out.append(text[i:])
    return "".join(out)


def _matching_brace(text: str, i: int) -> int:
    depth = 0
    while i < len(text):
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _fits_one_line(element: str) -> bool:
    if "\n" in element:
        return False
    m = _METHOD_RE.match(element)
    if m is None:
        return len(element) <= _ONE_LINE_MAX
    return 1 + len("func" + m.group(2)) <= _ONE_LINE_MAX


def _reindent(raw_lines: list[str]) -> list[_Line]:
    """Indent each line by its brace depth; keep multi-line literals verbatim."""
    result: list[_Line] = []
    stack: list[tuple[int, str]] = []
    next_block = 1
    state = ""
    for raw in raw_lines:
        if state != "":
            delta, _, state = _scan(raw, state)
            block, kind = stack[-1] if stack else (0, "file")
            result.append(_Line(raw, len(stack), block, kind, True))
            leading = 0
            text = raw
        else:
            text = raw.strip()
            delta, leading, state = _scan(text, state)
            for _ in range(min(leading, len(stack))):
                stack.pop()
            block, kind = stack[-1] if stack else (0, "file")
            result.append(_Line(text, len(stack), block, kind, False))
        rest = delta + leading
        while rest > 0:
            stack.append((next_block, _block_kind(text)))
            next_block += 1
            rest -= 1
        while rest < 0 and stack:
            stack.pop()
            rest += 1
    return result


def _align(lines: list[_Line]) -> None:
    """Align struct fields and keyed elements in runs of consecutive lines."""
    run: list[tuple[_Line, str, str]] = []
    for ln in lines:
        m = None
        if not ln.verbatim and not ln.text.startswith("//"):
            if ln.kind == "struct":
                m = _FIELD_RE.match(ln.text)
            elif ln.kind == "block":
                m = _KEYED_RE.match(ln.text)
        if m is None or (run and run[0][0].block != ln.block):
            _flush(run)
            run = []
        if m is not None:
            run.append((ln, m.group(1), m.group(2)))
    _flush(run)


def _flush(run: list[tuple[_Line, str, str]]) -> None:
    if not run:
        return
    width = max(len(col) for _, col, _ in run)
    for ln, col, rest in run:
        ln.text = col.ljust(width) + " " + rest


def _join(lines: list[_Line]) -> str:
    """Render lines, collapsing blank runs and trimming blanks inside braces."""
    out: list[str] = []
    for ln in lines:
        if ln.verbatim:
            out.append(ln.text)
            continue
        if ln.text == "":
            if not out or out[-1] == "" or out[-1].endswith("{"):
                continue
            out.append("")
            continue
        if ln.text.startswith("}") and out and out[-1] == "":
            out.pop()
        out.append("\t" * ln.indent + ln.text)
    while out and out[-1] == "":
        out.pop()
    return "\n".join(out) + "\n"
