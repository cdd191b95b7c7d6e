# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Error types raised by the rescan pipeline.

Every failure aborts the current message and reaches the caller as a
``RescanError`` subclass. The ``step`` attribute names the pipeline stage
that failed and ``path`` the message file (when one is known), so the
invoking layer can log and map errors without parsing messages.
"""

from __future__ import annotations


class RescanError(Exception):
    """Base class for all rescan failures."""

    step = "rescan"

    def __init__(self, message: str, path: str | None = None, step: str | None = None):
        super().__init__(message)
        self.message = message
        self.path = path
        if step is not None:
            self.step = step

    def __str__(self) -> str:
        if self.path:
            return f"{self.step}: {self.message} [{self.path}]"
        return f"{self.step}: {self.message}"


class InputResolutionError(RescanError):
    """Bad account identifier, unreadable directory or unusable Message-ID."""

    step = "input"


class ClassificationError(RescanError):
    """Transport failure, non-success status or undecodable verdict."""

    step = "classify"


class ContextExtractionError(RescanError):
    """Missing From/To/Delivered-To or no usable Received trail."""

    step = "context"


class ReputationError(RescanError):
    """Sender score DNS lookup failed or returned nothing."""

    step = "reputation"


class CollaboratorError(RescanError):
    """Address book or spam class lookup failed."""

    step = "collaborator"


class OutputError(RescanError):
    """Unexpected source layout or failure writing the rewritten message."""

    step = "output"


__all__ = [
    "ClassificationError",
    "CollaboratorError",
    "ContextExtractionError",
    "InputResolutionError",
    "OutputError",
    "RescanError",
    "ReputationError",
]
