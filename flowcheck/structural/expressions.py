# flowcheck/structural/expressions.py

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Set, Tuple

# Expressions are embedded in parameter strings between double braces:
#   "={{ $json.email }}", "Hello {{ $node[\"Fetch\"].json.name }}"
_DELIM_RE = re.compile(r"\{\{|\}\}")
_SEGMENT_RE = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)

# Node-scoped references:
#   $node["Name"]  $node['Name']
#   $("Name")      $('Name')
#   $items("Name") $items('Name', 0)
_NODE_REF_RES = (
    re.compile(r"""\$node\s*\[\s*(['"])(.*?)\1\s*\]"""),
    re.compile(r"""\$(?:items)?\(\s*(['"])(.*?)\1"""),
)


@dataclass(frozen=True)
class ExpressionProblem:
    message: str
    reference: Optional[str] = None


def iter_string_fields(value: Any, path: str = "") -> Iterator[Tuple[str, str]]:
    """
    Walk nested parameters and yield (path, string) pairs.
    Paths look like "options.headers[0].value".
    """
    if isinstance(value, str):
        yield path, value
    elif isinstance(value, dict):
        for k, v in value.items():
            yield from iter_string_fields(v, f"{path}.{k}" if path else str(k))
    elif isinstance(value, (list, tuple)):
        for i, v in enumerate(value):
            yield from iter_string_fields(v, f"{path}[{i}]")


def has_expression(text: str) -> bool:
    """
    n8n evaluates a parameter as an expression when the value starts with "=".
    Without the marker only strings opening or closing with the delimiters
    count, so literal text such as JSON or code that happens to contain "}}"
    is left alone.
    """
    s = text.strip()
    if s.startswith("="):
        return True
    return s.startswith("{{") or s.endswith("}}")


def check_delimiters(text: str) -> Optional[str]:
    """Return a description of the first delimiter problem, or None."""
    depth = 0
    for m in _DELIM_RE.finditer(text):
        if m.group() == "{{":
            if depth:
                return f"nested '{{{{' at offset {m.start()}"
            depth = 1
        else:
            if not depth:
                return f"'}}}}' without matching '{{{{' at offset {m.start()}"
            depth = 0
    if depth:
        return "unclosed '{{'"
    return None


def node_references(text: str) -> List[str]:
    """Node names referenced from inside {{ ... }} segments, in order of appearance."""
    refs: List[Tuple[int, str]] = []
    for seg in _SEGMENT_RE.finditer(text):
        body = seg.group(1)
        for rx in _NODE_REF_RES:
            for m in rx.finditer(body):
                refs.append((seg.start(1) + m.start(), m.group(2)))
    return [name for _, name in sorted(refs)]


def check_expression(text: str, known_names: Set[str]) -> List[ExpressionProblem]:
    """Delimiter balance plus resolution of node-scoped references."""
    problems: List[ExpressionProblem] = []
    delim = check_delimiters(text)
    if delim:
        problems.append(ExpressionProblem(f"unbalanced expression delimiters ({delim})"))
    seen = set()
    for name in node_references(text):
        if name in known_names or name in seen:
            continue
        seen.add(name)
        problems.append(ExpressionProblem(f"references unknown node '{name}'", reference=name))
    return problems
