"""
Error taxonomy for receipt PDF generation.

Two classes of failure exist:

- Structural or identity failures (malformed layout, undecomposable
  instance identifiers, failing backing services). These are fatal:
  no meaningful document can be produced.
- Cosmetic gaps (a mapped data path that resolves to nothing, an option
  list that does not exist). These are NOT errors. They are handled by
  omission where they occur and never surface as exceptions.

InvalidPathExpressionError sits in between: it aborts only the mapping
declaration that carries the malformed path.
"""

from __future__ import annotations

from typing import Optional


class ReceiptError(RuntimeError):
    """Base class for all receipt generation failures."""


class MalformedLayoutError(ReceiptError):
    """Raised when a layout document is unparsable or lacks required structure."""


class InvalidPathExpressionError(ReceiptError, ValueError):
    """Raised when a data path expression has invalid syntax."""

    def __init__(self, expression: str, reason: str) -> None:
        self.expression = expression
        self.reason = reason
        super().__init__(f"Invalid path expression '{expression}': {reason}")


class InvalidInstanceReferenceError(ReceiptError, ValueError):
    """Raised when an instance identifier cannot be decomposed."""


class ExternalServiceError(ReceiptError):
    """
    Raised when a backing platform service call fails outright.

    The PDF cannot be produced without the data these services supply,
    so this error always propagates.
    """

    def __init__(
        self,
        service: str,
        message: str,
        *,
        status_code: Optional[int] = None,
    ) -> None:
        self.service = service
        self.status_code = status_code
        detail = f"{service}: {message}"
        if status_code is not None:
            detail = f"{detail} (status={status_code})"
        super().__init__(detail)
