from __future__ import annotations


class PermFdrError(Exception):
    pass


class ValidationError(PermFdrError, ValueError):
    """Inputs disagree with each other (lengths, labels, table shapes)."""


class DegenerateInputError(PermFdrError, ValueError):
    """A test was asked for a p-value it cannot define (tiny groups, zero variance)."""


class ConfigurationError(PermFdrError, ValueError):
    """Run settings are out of range (permutation count, group counts, threshold)."""
