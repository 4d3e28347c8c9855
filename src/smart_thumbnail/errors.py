"""
Error Taxonomy
==============

Exceptions raised by the thumbnail engine.

Hierarchy:
    ThumbnailEngineError
        InputError               - bad frame sequence or scene
            DimensionMismatchError - histogram lengths disagree
        ExtractionFailure        - one frame could not be analysed
            CollaboratorFailure  - face detector / frame source / metadata failed
        FatalConfigError         - invalid configuration, raised before any work

Design Rules:
    - Per-frame failures (ExtractionFailure) are isolated by the worker pool
    - FatalConfigError aborts a run before any state is produced
    - A short top-N result is NOT an error
"""


class ThumbnailEngineError(Exception):
    """Base class for all thumbnail engine errors."""
    pass


class InputError(ThumbnailEngineError):
    """Raised for an empty frame sequence, bad frame ordering or an empty scene."""
    pass


class DimensionMismatchError(InputError):
    """Raised when two histograms have different lengths."""
    pass


class ExtractionFailure(ThumbnailEngineError):
    """Raised when feature computation fails for a single frame."""

    def __init__(self, message: str, frame_index: int = -1) -> None:
        super().__init__(message)
        self.frame_index = frame_index


class CollaboratorFailure(ExtractionFailure):
    """Raised when an external collaborator fails (face detector, frame source, metadata)."""
    pass


class FatalConfigError(ThumbnailEngineError):
    """Raised for invalid configuration (pool size, top_n, weights, distances)."""
    pass
