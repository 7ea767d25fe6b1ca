# File: diagramgen/errors.py
"""
diagramgen - Error taxonomy
=============================

Every failure the pipeline can surface to a caller derives from
``DiagramGenError`` and carries:

* ``status_code``: HTTP-equivalent status used by ``diagramgen.service``;
* ``exit_code``: process exit code used by ``diagramgen.cli``;
* ``user_message``: short text that lets a UI tell "nothing to generate"
  apart from "generation failed" apart from "could not package result".

``RelationshipResolutionWarning`` is the only non-fatal member: the resolver
records and logs it, it is never raised.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("diagramgen.errors")


class DiagramGenError(Exception):
    """Base class for all request-fatal generator errors."""

    status_code: int = 500
    exit_code: int = 2
    user_message: str = "Generation failed"

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message: str = message
        self.cause: Optional[BaseException] = cause

    def to_payload(self) -> Dict[str, Any]:
        """Structured error payload returned to callers: ``{ok: false, message}``."""
        return {"ok": False, "message": f"{self.user_message}: {self.message}"}


class ValidationError(DiagramGenError):
    """The diagram is structurally unusable (no tables/relationships shape)."""

    status_code = 400
    exit_code = 1
    user_message = "Invalid diagram"


class EmptyDiagramError(DiagramGenError):
    """The diagram is well-formed but has zero tables."""

    status_code = 400
    exit_code = 1
    user_message = "No tables to generate"

    def __init__(self, message: str = "The diagram contains no tables.") -> None:
        super().__init__(message)


class EmissionError(DiagramGenError):
    """A directory-create or file-write step failed."""

    status_code = 500
    exit_code = 2
    user_message = "Generation failed"


class PackagingError(DiagramGenError):
    """Archiving the emitted tree failed after successful emission."""

    status_code = 500
    exit_code = 3
    user_message = "Could not package result"


class RelationshipResolutionWarning(UserWarning):
    """
    A single relationship could not be resolved (dangling endpoint, unknown
    type, inheritance cycle).  The relationship is skipped; generation goes on.
    """

    def __init__(
        self,
        code: str,
        message: str,
        relationship_id: str = "",
    ) -> None:
        super().__init__(message)
        self.code: str = code
        self.message: str = message
        self.relationship_id: str = relationship_id

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, str]:
        return {
            "code": self.code,
            "message": self.message,
            "relationship_id": self.relationship_id,
        }


def error_payload(exc: BaseException) -> Dict[str, Any]:
    """
    Build the ``{ok: false, message}`` payload for any exception.

    Unexpected exceptions are reported as a generic generation failure.
    """
    if isinstance(exc, DiagramGenError):
        return exc.to_payload()
    return {"ok": False, "message": f"{DiagramGenError.user_message}: {exc}"}


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DiagramGenError",
    "ValidationError",
    "EmptyDiagramError",
    "EmissionError",
    "PackagingError",
    "RelationshipResolutionWarning",
    "error_payload",
]

logger.debug("diagramgen.errors loaded.")
