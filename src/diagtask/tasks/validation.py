# src/diagtask/tasks/validation.py

from __future__ import annotations

import re

# Allow-list: decimal digits only. The empty string means "no argument".
_DIGITS_RE = re.compile(r"[0-9]*")


def validate_argument(argument: str) -> bool:
    """Return True if `argument` is safe to hand to a worker command line."""
    return _DIGITS_RE.fullmatch(argument) is not None
