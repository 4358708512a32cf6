"""Data models."""

from bookmind.models.analysis import (
    ANALYSIS_OPTIONS,
    AnalysisOption,
    AnalysisType,
    SlideImage,
    get_analysis_option,
)
from bookmind.models.book import (
    MIN_TEXT_LENGTH,
    BookSession,
    Chapter,
    ExtractedDocument,
)

__all__ = [
    # Book models
    "Chapter",
    "BookSession",
    "ExtractedDocument",
    "MIN_TEXT_LENGTH",
    # Analysis models
    "AnalysisType",
    "AnalysisOption",
    "ANALYSIS_OPTIONS",
    "SlideImage",
    "get_analysis_option",
]
