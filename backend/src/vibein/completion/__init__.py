"""Completion module."""

from vibein.completion.extractor import ExtractedReview, ReviewExtractionClient
from vibein.completion.service import CompletionResult, CompletionWorkflow, ReviewProof

__all__ = [
    "CompletionResult",
    "CompletionWorkflow",
    "ExtractedReview",
    "ReviewExtractionClient",
    "ReviewProof",
]
