"""
Exception hierarchy for the Coldbar extraction pipeline.

Every error raised by the pipeline derives from :class:`ColdbarError` and
also from the closest built-in exception, so callers can catch either the
specific Coldbar kind or the generic Python one (``FileNotFoundError``,
``LookupError``, ``ValueError``, ``RuntimeError``).

Each error carries a ``stage`` attribute. It is ``None`` when raised and is
stamped by :class:`~coldbar.data_access.extraction_pipeline.ExtractionPipeline`
with the name of the innermost pipeline stage that failed.
"""

from __future__ import annotations


class ColdbarError(Exception):
    """Base class for all extraction pipeline errors."""

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage


class NotFoundError(ColdbarError, FileNotFoundError):
    """Input dataset, archive or configuration file does not exist."""


class NoDatasetInArchiveError(ColdbarError, LookupError):
    """Archive has no member matching the dataset file pattern."""


class MalformedConfigError(ColdbarError, ValueError):
    """Configuration is missing required keys or holds invalid values."""


class VariableNotFoundError(ColdbarError, LookupError):
    """No variable declaration matches the requested name."""


class TimeDimensionNotFoundError(ColdbarError, LookupError):
    """Dataset declares no ``time`` dimension."""


class UnsupportedGridError(ColdbarError, ValueError):
    """Coordinate expansion requested on a grid without 2-D lon/lat variables."""


class ToolError(ColdbarError, RuntimeError):
    """External dump tool is missing or exited with a non-zero status."""


class ExtractionError(ColdbarError, ValueError):
    """Record dump does not line up with the configuration or coordinate stream."""
