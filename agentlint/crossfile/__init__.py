"""Cross-document reference validation: extraction, resolution and graph checks."""

from .allowlist import DEFAULT_ALLOW_LIST, BuiltInAllowList
from .chain import ChainLink, format_chain, trace_chain
from .extractors import MentionKind, ReferenceMention, extract_mentions, string_or_array
from .graph import Cycle, ReferenceGraph, format_cycle
from .index import CorpusIndex, canonical_name, expected_path
from .resolver import ReferenceResolver, Resolution
from .triggers import TriggerMapping, parse_trigger_table
from .validator import CrossFileReport, CrossFileValidator

__all__ = [
    "BuiltInAllowList",
    "ChainLink",
    "CorpusIndex",
    "CrossFileReport",
    "CrossFileValidator",
    "Cycle",
    "DEFAULT_ALLOW_LIST",
    "MentionKind",
    "ReferenceGraph",
    "ReferenceMention",
    "ReferenceResolver",
    "Resolution",
    "TriggerMapping",
    "canonical_name",
    "expected_path",
    "extract_mentions",
    "format_chain",
    "format_cycle",
    "parse_trigger_table",
    "string_or_array",
    "trace_chain",
]
