"""Tree-sitter parsing for PHP source files.

Wraps the tree-sitter PHP grammar and exposes small helpers for reading
node text, names, string literals and call arguments. Parsing never raises:
every outcome is reported through a ParseResult.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import tree_sitter_php
from tree_sitter import Language, Node, Parser, Tree

PHP_LANGUAGE = Language(tree_sitter_php.language_php())

DEFAULT_MAX_FILE_SIZE = 1048576  # 1MB

NAME_NODE_TYPES = ("name", "qualified_name")
STRING_NODE_TYPES = ("string", "encapsed_string")

# Parser instances are not safe to share between threads
_local = threading.local()


def _get_parser() -> Parser:
    parser = getattr(_local, "parser", None)
    if parser is None:
        parser = Parser(PHP_LANGUAGE)
        _local.parser = parser
    return parser


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one file: a syntax tree or an error reason."""

    path: str
    tree: Optional[Tree] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.tree is not None and self.error is None

    @property
    def root(self) -> Node:
        if self.tree is None:
            raise ValueError(f"No syntax tree for {self.path}: {self.error}")
        return self.tree.root_node


def parse_source(source: str | bytes, path: str = "<string>") -> ParseResult:
    """Parse PHP source code.

    A tree containing ERROR or MISSING nodes counts as a parse failure.
    """
    data = source.encode("utf-8") if isinstance(source, str) else source
    tree = _get_parser().parse(data)
    if tree.root_node.has_error:
        return ParseResult(path=path, error="syntax error")
    return ParseResult(path=path, tree=tree)


def parse_file(
    file_path: Path | str,
    max_file_size: int = DEFAULT_MAX_FILE_SIZE,
) -> ParseResult:
    """Read and parse a PHP file.

    Args:
        file_path: Path to the .php file.
        max_file_size: Files larger than this are reported as errors.

    Returns:
        ParseResult with the tree, or with `error` set when the file cannot
        be read, is too large, or does not parse cleanly.
    """
    file_path = Path(file_path)
    path = str(file_path)

    try:
        if file_path.stat().st_size > max_file_size:
            return ParseResult(path=path, error="file too large")
        data = file_path.read_bytes()
    except OSError as e:
        return ParseResult(path=path, error=f"unreadable: {e}")

    return parse_source(data, path)


def node_text(node: Optional[Node]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def normalize_name(name: str) -> str:
    """Strip the leading global-namespace separator from a PHP name."""
    return name.strip().lstrip("\\")


def name_text(node: Optional[Node]) -> Optional[str]:
    """Text of a name/qualified_name node, normalized; None otherwise."""
    if node is None or node.type not in NAME_NODE_TYPES:
        return None
    return normalize_name(node_text(node))


def string_value(node: Optional[Node]) -> Optional[str]:
    """Value of a plain string literal, or None for anything else.

    Interpolated double-quoted strings are not considered literals.
    """
    if node is None or node.type not in STRING_NODE_TYPES:
        return None
    if node.type == "encapsed_string" and any(
        child.type in ("variable_name", "member_access_expression", "subscript_expression")
        for child in node.named_children
    ):
        return None

    text = node_text(node)
    if text[:1] in ("b", "B"):
        text = text[1:]
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        quote = text[0]
        body = text[1:-1]
        return body.replace("\\" + quote, quote).replace("\\\\", "\\")
    return None


def walk(node: Node) -> Iterator[Node]:
    """Yield `node` and all its descendants in document order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def children_of_type(node: Optional[Node], *types: str) -> list[Node]:
    if node is None:
        return []
    return [child for child in node.named_children if child.type in types]


def first_child_of_type(node: Optional[Node], *types: str) -> Optional[Node]:
    for child in children_of_type(node, *types):
        return child
    return None


@dataclass(frozen=True)
class Argument:
    """One call or attribute argument: optional name plus value node."""

    name: Optional[str]
    value: Optional[Node]


def call_arguments(arguments: Optional[Node]) -> list[Argument]:
    """Split an `arguments` node into Argument records."""
    result: list[Argument] = []
    for arg in children_of_type(arguments, "argument"):
        name_node = arg.child_by_field_name("name")
        values = [c for c in arg.named_children if name_node is None or c.id != name_node.id]
        result.append(Argument(
            name=node_text(name_node) if name_node is not None else None,
            value=values[-1] if values else None,
        ))
    return result


def class_constant_class(node: Optional[Node]) -> Optional[str]:
    """For `Foo::BAR` / `Foo::class`, return "Foo"; None otherwise."""
    if node is None or node.type != "class_constant_access_expression":
        return None
    named = node.named_children
    if not named:
        return None
    return name_text(named[0])
