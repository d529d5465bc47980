"""
Extraction subsystem for memograph.

Turns unstructured text into proposed, Experimental graph content via
an external reasoning capability, and produces single-node analyses.
"""

from memograph.extraction.schema import (
    ToulminExtraction,
    SummaryAnalysis,
    ArgumentationAssessment,
    LinkSuggestion,
    LinkSuggestions,
    parse_capability_output,
)
from memograph.extraction.pipeline import (
    ExtractionPipeline,
    ExtractionReport,
    ExtractionState,
)
from memograph.extraction.summarizer import (
    ArgumentationCheckResult,
    Summarizer,
    SummaryResult,
)

__all__ = [
    "ToulminExtraction",
    "SummaryAnalysis",
    "ArgumentationAssessment",
    "LinkSuggestion",
    "LinkSuggestions",
    "parse_capability_output",
    "ExtractionPipeline",
    "ExtractionReport",
    "ExtractionState",
    "Summarizer",
    "SummaryResult",
    "ArgumentationCheckResult",
]
