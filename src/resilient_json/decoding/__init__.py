"""Fault-tolerant decoding of JSON embedded in model output.

Pipeline, leaves first: extractor -> repair -> recovery -> attempt chain.
"""

from .chain import StructuredDecoder, coerce_text, default_attempts
from .extractor import extract_bracket_span, extract_candidate, extract_fenced_block
from .recovery import balance_brackets, recover, trim_to_structure
from .repair import DEFAULT_REPAIR_RULES, RepairRule, repair
from .scanner import StructureScan, scan_structure, strip_comments
from .types import (
    AttemptSpec,
    DecodeDiagnostics,
    DecodeInput,
    DecodeOutcome,
    DecodeStage,
)

__all__ = [  # noqa: RUF022
    # Chain
    "StructuredDecoder",
    "default_attempts",
    "coerce_text",
    # Types
    "AttemptSpec",
    "DecodeDiagnostics",
    "DecodeInput",
    "DecodeOutcome",
    "DecodeStage",
    # Extraction
    "extract_candidate",
    "extract_fenced_block",
    "extract_bracket_span",
    # Repair and recovery
    "repair",
    "RepairRule",
    "DEFAULT_REPAIR_RULES",
    "recover",
    "balance_brackets",
    "trim_to_structure",
    # Scanning
    "StructureScan",
    "scan_structure",
    "strip_comments",
]
