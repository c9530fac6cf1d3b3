"""Metadata and filename pattern rules that select templates."""

from .conditions import ConditionResult, RuleEvaluation, evaluate_condition, evaluate_rule, find_matching_rule
from .field_resolver import FieldResolution, field_exists, is_valid_field_path, resolve_field_path
from .glob_matcher import (
    GlobValidation,
    evaluate_filename_rule,
    expand_braces,
    glob_to_regex,
    match_glob,
    validate_glob_pattern,
)
from .manager import RuleManager
from .priority import UnifiedRule, get_unified_rule_priorities, reorder_unified_rules, set_unified_rule_priority
from .template_resolver import RuleMatch, TemplateResolution, find_matching_rules, resolve_template_for_rule

__all__ = [
    "ConditionResult",
    "FieldResolution",
    "GlobValidation",
    "RuleEvaluation",
    "RuleManager",
    "RuleMatch",
    "TemplateResolution",
    "UnifiedRule",
    "evaluate_condition",
    "evaluate_filename_rule",
    "evaluate_rule",
    "expand_braces",
    "field_exists",
    "find_matching_rule",
    "find_matching_rules",
    "get_unified_rule_priorities",
    "glob_to_regex",
    "is_valid_field_path",
    "match_glob",
    "reorder_unified_rules",
    "resolve_field_path",
    "resolve_template_for_rule",
    "set_unified_rule_priority",
    "validate_glob_pattern",
]
