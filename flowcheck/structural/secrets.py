# flowcheck/structural/secrets.py

from __future__ import annotations

import re
from typing import Any, Iterator, Tuple

from flowcheck.structural.expressions import iter_string_fields

# (label, pattern) for credential-looking literals. Values are matched only
# outside {{ ... }} expressions; $env / credential references are fine.
SECRET_PATTERNS = (
    ("Google API key", re.compile(r"AIza[0-9A-Za-z_\-]{35}")),
    ("Anthropic API key", re.compile(r"\bsk-ant-[A-Za-z0-9_\-]{20,}")),
    ("OpenAI API key", re.compile(r"\bsk-(?:proj-)?[A-Za-z0-9_\-]{20,}")),
    ("Slack token", re.compile(r"\bxox[abprs]-[A-Za-z0-9\-]{10,}")),
    ("GitHub token", re.compile(r"\bgh[pousr]_[A-Za-z0-9]{36,}")),
    ("AWS access key", re.compile(r"\bAKIA[0-9A-Z]{16}\b")),
    ("bearer token", re.compile(r"\bBearer\s+[A-Za-z0-9\-._~+/]{20,}=*")),
)

_EXPRESSION_RE = re.compile(r"\{\{.*?\}\}", re.DOTALL)


def scan_secrets(parameters: Any) -> Iterator[Tuple[str, str]]:
    """Yield (parameter path, label) for each literal that looks like a credential."""
    for path, text in iter_string_fields(parameters):
        literal = _EXPRESSION_RE.sub("", text)
        for label, rx in SECRET_PATTERNS:
            if rx.search(literal):
                yield path, label
                break
