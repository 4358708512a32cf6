"""Data models for analysis requests and generated media."""

import base64
from enum import Enum

from pydantic import BaseModel


class AnalysisType(str, Enum):
    """Style of chapter analysis."""

    STANDARD = "standard"
    DETAILED = "detailed"
    INSIGHTS = "insights"
    CRITICAL = "critical"


class AnalysisOption(BaseModel):
    """Display metadata for an analysis style."""

    type: AnalysisType
    label: str
    description: str


ANALYSIS_OPTIONS: list[AnalysisOption] = [
    AnalysisOption(
        type=AnalysisType.STANDARD,
        label="Standard",
        description="Complete & concise summary",
    ),
    AnalysisOption(
        type=AnalysisType.DETAILED,
        label="Detailed",
        description="Concepts, examples & conclusions",
    ),
    AnalysisOption(
        type=AnalysisType.INSIGHTS,
        label="Insights",
        description="Reflections & practical applications",
    ),
    AnalysisOption(
        type=AnalysisType.CRITICAL,
        label="Critical",
        description="Strengths, weaknesses & critique",
    ),
]


def get_analysis_option(analysis_type: AnalysisType) -> AnalysisOption:
    for option in ANALYSIS_OPTIONS:
        if option.type == analysis_type:
            return option
    raise ValueError(f"Unknown analysis type: {analysis_type}")


class SlideImage(BaseModel):
    """Generated slide image."""

    data: bytes
    mime_type: str = "image/png"

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    @property
    def extension(self) -> str:
        """File extension matching the mime type."""
        subtype = self.mime_type.split("/")[-1].lower()
        return ".jpg" if subtype == "jpeg" else f".{subtype}"
