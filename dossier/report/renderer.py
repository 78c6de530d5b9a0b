"""Interface for document-rendering engines."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from dossier.models.report import ReportDocument


@runtime_checkable
class DocumentRenderer(Protocol):
    """Turns an already ordered report document into a fixed-layout artifact."""

    name: str
    media_type: str

    def render(self, document: ReportDocument) -> bytes:
        """Render synchronously and return the artifact bytes."""
        ...
