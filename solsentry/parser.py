# AST loading: turn the external Solidity parser's JSON output into ASTNode trees.
#
# Parsing Solidity text is done upstream by @solidity-parser/parser (run with
# `loc: true`); this module only adapts its JSON to the node model in nodes.py.

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from solsentry.errors import AstLoadError
from solsentry.nodes import ASTNode, SourceLocation

logger = logging.getLogger(__name__)

# Suffix of the AST file written next to each .sol file by the parser step.
DEFAULT_AST_SUFFIX = ".ast.json"


def _convert(value: Any) -> Any:
    if isinstance(value, dict):
        if isinstance(value.get("type"), str):
            return parse_ast(value)
        return {k: _convert(v) for k, v in value.items()}
    if isinstance(value, list):
        return tuple(_convert(v) for v in value)
    return value


def parse_ast(data: dict[str, Any]) -> ASTNode:
    """
    Convert one parser node (a dict with a "type" key) into an ASTNode, recursively.

    `loc` becomes a SourceLocation and `range` a (start, end) tuple; every other
    key is kept as a field, with nested nodes converted and lists frozen.

    Raises:
        AstLoadError: if `data` is not a node dict.
    """
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise AstLoadError("AST node must be an object with a string 'type'")

    loc: Optional[SourceLocation] = None
    raw_loc = data.get("loc")
    if isinstance(raw_loc, dict):
        loc = SourceLocation.from_dict(raw_loc)

    raw_range = data.get("range")
    node_range = None
    if isinstance(raw_range, (list, tuple)) and len(raw_range) == 2:
        node_range = (int(raw_range[0]), int(raw_range[1]))

    fields = {
        key: _convert(value)
        for key, value in data.items()
        if key not in ("type", "loc", "range")
    }
    return ASTNode(data["type"], fields, loc=loc, range=node_range)


def ast_path_for(source_path: Path, suffix: str = DEFAULT_AST_SUFFIX) -> Path:
    """Return where the parser step stores the AST for a .sol file (Foo.sol -> Foo.sol.ast.json)."""
    return source_path.with_name(source_path.name + suffix)


def load_ast_file(path: Path) -> ASTNode:
    """
    Read a JSON AST file produced by the external parser.

    Accepts either the bare SourceUnit object or a wrapper of the form
    {"ast": {...}, "errors": [...]}; a wrapper with errors and no AST is a
    parse failure.

    Raises:
        AstLoadError: if the file is unreadable, not JSON, holds no AST, or holds
            node data that cannot be converted (bad locations, runaway nesting).
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise AstLoadError(f"Cannot read AST file {path}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AstLoadError(f"Malformed AST JSON in {path}: {e.msg}", e.lineno, e.colno) from e
    except RecursionError as e:
        raise AstLoadError(f"AST in {path} is nested too deeply to load") from e

    if isinstance(data, dict) and "ast" in data and not isinstance(data.get("type"), str):
        errors = data.get("errors") or []
        if data["ast"] is None:
            first = errors[0] if errors and isinstance(errors[0], dict) else {}
            raise AstLoadError(
                str(first.get("message", f"Parser produced no AST for {path}")),
                int(first.get("line", 0)),
                int(first.get("column", 0)),
            )
        data = data["ast"]

    try:
        ast = parse_ast(data)
    except RecursionError as e:
        raise AstLoadError(f"AST in {path} is nested too deeply to load") from e
    except (ValueError, TypeError) as e:
        raise AstLoadError(f"Invalid AST data in {path}: {e}") from e
    logger.debug("Loaded AST %s: root=%s", path, ast.type)
    return ast


def load_source(path: Path) -> str:
    """Read Solidity source text; undecodable bytes are replaced rather than failing."""
    return path.read_bytes().decode("utf-8", errors="replace")
