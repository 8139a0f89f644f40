"""Domain errors raised when upstream data violates an invariant."""

from __future__ import annotations

from typing import Any


class InvalidDomainValueError(ValueError):
    """Raised when a domain record carries a value outside its allowed set.

    Examples: a MEDDIC sub-score outside [0, 10], or a deal stage that is
    not part of the canonical pipeline. These are data-quality bugs
    upstream and are surfaced rather than coerced.
    """

    def __init__(self, field: str, value: Any, allowed: str) -> None:
        self.field = field
        self.value = value
        self.allowed = allowed
        super().__init__(f"Invalid value for {field}: {value!r} (expected {allowed})")
