"""Rename preview engine.

This package turns files, their extracted metadata and naming templates or
rules into rename proposals. It does NOT touch the filesystem beyond
existence checks during conflict detection.
"""

from .conflict_detector import ConflictDetector, ConflictReport
from .folder_resolver import resolve_folder_path, validate_folder_pattern
from .models import (
    FileInfo,
    RenamePreview,
    RenameProposal,
    RenameStatus,
    Template,
    UnifiedMetadata,
)
from .os_sanitizer import OSFilenameSanitizer, SanitizeOptions
from .pattern_manager import PatternManager
from .proposal_generator import PreviewOptions, ProposalGenerator, RuleSet
from .results import ErrorType, Result
from .template_parser import parse_template

__all__ = [
    "ConflictDetector",
    "ConflictReport",
    "ErrorType",
    "FileInfo",
    "OSFilenameSanitizer",
    "PatternManager",
    "PreviewOptions",
    "ProposalGenerator",
    "RenamePreview",
    "RenameProposal",
    "RenameStatus",
    "Result",
    "RuleSet",
    "SanitizeOptions",
    "Template",
    "UnifiedMetadata",
    "parse_template",
    "resolve_folder_path",
    "validate_folder_pattern",
]
