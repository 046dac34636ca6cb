"""
Unreliable structured extraction from a search-enabled text model.

Build a prompt per batch of subjects, recover the JSON array from free-form
output, validate it and merge the records back onto the subjects.
"""

from .batching import partition, progress_percent
from .cleaning import clean_json, parse_records
from .client import GeminiSearchClient, OpenAISearchClient, SearchModelClient, create_search_client
from .models import BatchOutcome, EnrichmentTask, MatchMode, RefreshRun, RunnerState
from .prompts import build_prompt
from .reconcile import identifiers_match, names_match, reconcile
from .runner import BatchRunner

__all__ = [
    "BatchOutcome",
    "BatchRunner",
    "EnrichmentTask",
    "GeminiSearchClient",
    "MatchMode",
    "OpenAISearchClient",
    "RefreshRun",
    "RunnerState",
    "SearchModelClient",
    "build_prompt",
    "clean_json",
    "create_search_client",
    "identifiers_match",
    "names_match",
    "parse_records",
    "partition",
    "progress_percent",
    "reconcile",
]
