"""Exceptions raised by the index package."""

from __future__ import annotations


class IndexNotBuiltError(RuntimeError):
    """Raised when a query or re-index runs before a full index exists."""

    def __init__(self, operation: str = "this operation") -> None:
        super().__init__(
            f"No index available for {operation}. Run index_project() first."
        )
        self.operation = operation
