"""Custom exception hierarchy for the listing annotator."""

from __future__ import annotations


class AnnotatorError(Exception):
    """Base class for all fatal annotator errors."""


class OpcodeDefinitionError(AnnotatorError):
    """Raised when a bundled opcode definition cannot be loaded."""


class ListingInputError(AnnotatorError):
    """Raised when the listing to annotate cannot be read."""


__all__ = ["AnnotatorError", "OpcodeDefinitionError", "ListingInputError"]
