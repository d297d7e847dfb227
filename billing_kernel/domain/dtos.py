"""
Domain DTOs shared between engines and services.

``ValidationFailure`` is the structured form of an
``InvoiceValidationError``: what a form layer receives instead of an
exception. It carries the error code, the offending line index or field,
a human-readable message, and any structured details of the error.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from billing_kernel.exceptions import InvoiceValidationError

_NON_DETAIL_ATTRS = frozenset({"index", "field"})


@dataclass(frozen=True)
class ValidationFailure:
    """A single validation failure, suitable for a field-level form message."""

    code: str
    message: str
    index: int | None = None
    field: str | None = None
    details: dict[str, Any] = dataclasses.field(default_factory=dict)

    @classmethod
    def from_error(cls, error: InvoiceValidationError) -> ValidationFailure:
        details = {
            key: value
            for key, value in vars(error).items()
            if not key.startswith("_") and key not in _NON_DETAIL_ATTRS
        }
        return cls(
            code=error.code,
            message=str(error),
            index=error.index,
            field=error.field,
            details=details,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "index": self.index,
            "field": self.field,
            "details": {
                k: None if v is None else str(v)
                for k, v in self.details.items()
            },
        }
