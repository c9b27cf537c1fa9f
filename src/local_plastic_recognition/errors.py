"""Exception hierarchy for the recognition pipeline.

Only :class:`InvalidInputError` and :class:`DecodeFailureError` escape the
public classification calls. The other two are raised inside optional
signal sources and absorbed there.
"""

from __future__ import annotations


class PlasticRecognitionError(Exception):
    """Base class for every error raised by this package."""


class InvalidInputError(PlasticRecognitionError, ValueError):
    """The pixel buffer is empty, zero-sized or structurally malformed."""


class DecodeFailureError(PlasticRecognitionError, ValueError):
    """The encoded image could not be decoded into pixels."""


class ModelUnavailableError(PlasticRecognitionError, RuntimeError):
    """The learned model could not be loaded or failed during inference."""


class DegradedAnalysisError(PlasticRecognitionError, RuntimeError):
    """The profiler could not sample the image and must use its defaults."""
