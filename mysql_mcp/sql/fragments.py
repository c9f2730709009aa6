"""Placeholder handling for caller-supplied filter and ordering text.

Callers write ``?`` for bound values. Only a ``?`` outside quoted literals and
backtick identifiers is a placeholder. Inside ``'...'`` and ``"..."`` a
backslash escapes the next character, as in MySQL's default sql_mode.
"""
from typing import Optional

PLACEHOLDER = "%s"


def _rewrite(fragment: str) -> tuple[str, int]:
    out: list[str] = []
    count = 0
    quote: Optional[str] = None
    escaped = False
    for ch in fragment:
        if ch == "%":
            out.append("%%")
            escaped = False
            continue
        if escaped:
            escaped = False
        elif quote:
            if ch == "\\" and quote != "`":
                escaped = True
            elif ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
        elif ch == "?":
            out.append(PLACEHOLDER)
            count += 1
            continue
        out.append(ch)
    return "".join(out), count


def bindable_fragment(fragment: str) -> str:
    """Rewrite ``?`` placeholders to ``%s``.

    Every literal ``%`` is doubled so the driver's ``%`` interpolation
    reproduces the caller's text exactly.
    """
    return _rewrite(fragment)[0]


def count_placeholders(fragment: Optional[str]) -> int:
    """Number of ``?`` placeholders that will be bound in ``fragment``."""
    if not fragment:
        return 0
    return _rewrite(fragment)[1]
