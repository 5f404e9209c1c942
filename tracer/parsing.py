"""Tree-sitter access for Go source, shared by the reader and the formatter."""

from __future__ import annotations

from functools import lru_cache

try:
    from tree_sitter import Node, Parser, Tree
    from tree_sitter_language_pack import get_language
except ImportError as e:
    raise ImportError(
        "tree-sitter-language-pack is required. "
        "Install with: pip install tree-sitter tree-sitter-language-pack"
    ) from e


@lru_cache(maxsize=1)
def go_parser() -> Parser:
    """Cached tree-sitter parser for Go."""
    return Parser(get_language("go"))


def parse_go(source: str) -> Tree:
    """Parse Go source text into a tree-sitter tree."""
    return go_parser().parse(source.encode("utf-8"))


def first_error(root: Node) -> Node | None:
    """Return the first ERROR or MISSING node in document order, or None."""
    if not root.has_error:
        return None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        children = [c for c in node.children if c.has_error or c.is_missing]
        children.reverse()
        stack.extend(children)
    return root


def node_text(node: Node) -> str:
    """Source text covered by node."""
    text = node.text
    if text is None:
        return ""
    return text.decode("utf-8")


def node_pos(node: Node) -> tuple[int, int]:
    """1-indexed line and 0-indexed column of node's start."""
    return (node.start_point[0] + 1, node.start_point[1])
