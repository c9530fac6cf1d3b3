"""Evaluation of metadata pattern rules."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import lru_cache

import structlog

from services.tidy_service.src.exceptions import ConditionEvaluationError

from ..models import MatchMode, MetadataPatternRule, RuleCondition, RuleOperator, UnifiedMetadata
from ..results import Result
from .field_resolver import field_exists, resolve_field_path

logger = structlog.get_logger(__name__)

REGEX_CACHE_MAX_SIZE = 1000


@dataclass(frozen=True)
class ConditionResult:
    """Outcome of one condition."""

    matched: bool
    field_path: str
    resolved_value: str | None
    expected_value: str | None


@dataclass(frozen=True)
class RuleEvaluation:
    """Outcome of evaluating all conditions of a rule."""

    matches: bool
    matched_conditions: list[str] = field(default_factory=list)
    unmatched_conditions: list[str] = field(default_factory=list)


@lru_cache(maxsize=REGEX_CACHE_MAX_SIZE)
def compile_regex(pattern: str, case_sensitive: bool) -> re.Pattern[str]:
    """Compile (and cache) a condition regex. Raises ``re.error`` when invalid."""
    return re.compile(pattern, 0 if case_sensitive else re.IGNORECASE)


def is_valid_regex(pattern: str) -> bool:
    try:
        compile_regex(pattern, True)
    except re.error:
        return False
    return True


def _compare(operator: RuleOperator, value: str, expected: str, case_sensitive: bool) -> bool:
    if not case_sensitive:
        value, expected = value.lower(), expected.lower()
    if operator == RuleOperator.EQUALS:
        return value == expected
    if operator == RuleOperator.CONTAINS:
        return expected in value
    if operator == RuleOperator.STARTS_WITH:
        return value.startswith(expected)
    if operator == RuleOperator.ENDS_WITH:
        return value.endswith(expected)
    raise ValueError(f"Not a comparison operator: {operator}")


def evaluate_condition(condition: RuleCondition, metadata: UnifiedMetadata) -> ConditionResult:
    """Evaluate one condition against a file's metadata.

    A missing field never matches a value operator.

    Raises:
        ConditionEvaluationError: If the condition's regex does not compile
    """
    operator = condition.operator
    field_path = condition.field

    if operator in (RuleOperator.EXISTS, RuleOperator.NOT_EXISTS):
        exists = field_exists(field_path, metadata)
        return ConditionResult(
            matched=exists if operator == RuleOperator.EXISTS else not exists,
            field_path=field_path,
            resolved_value="exists" if exists else None,
            expected_value=None,
        )

    resolution = resolve_field_path(field_path, metadata)
    if not resolution.found or resolution.value is None:
        return ConditionResult(False, field_path, None, condition.value)

    expected = condition.value or ""
    if operator == RuleOperator.REGEX:
        try:
            regex = compile_regex(expected, condition.case_sensitive)
        except re.error as e:
            raise ConditionEvaluationError(
                f"Invalid regex pattern: {expected} ({e})", field_path, code="INVALID_REGEX"
            ) from e
        matched = regex.search(resolution.value) is not None
    else:
        matched = _compare(operator, resolution.value, expected, condition.case_sensitive)

    return ConditionResult(matched, field_path, resolution.value, condition.value)


def evaluate_rule(rule: MetadataPatternRule, metadata: UnifiedMetadata) -> Result[RuleEvaluation]:
    """Evaluate a rule's conditions in order.

    ``any`` stops at the first match and ``all`` at the first miss. A
    condition that cannot be evaluated counts as unmatched; if evaluation
    ends without short-circuiting and any condition failed, the rule fails
    with ``CONDITION_ERROR``.

    Args:
        rule: Metadata pattern rule
        metadata: Metadata record for the file

    Returns:
        Result holding a RuleEvaluation, or a ``RULE_DISABLED`` or
        ``CONDITION_ERROR`` error
    """
    if not rule.enabled:
        return Result.failure("RULE_DISABLED", f'Rule "{rule.name}" is disabled', rule_id=rule.id)

    matched: list[str] = []
    unmatched: list[str] = []
    errors: list[dict[str, str]] = []

    for condition in rule.conditions:
        try:
            result = evaluate_condition(condition, metadata)
        except ConditionEvaluationError as e:
            errors.append({"code": e.code, "message": str(e), "field_path": e.field_path})
            unmatched.append(condition.field)
            continue

        (matched if result.matched else unmatched).append(condition.field)

        if rule.match_mode == MatchMode.ANY and result.matched:
            return Result.success(RuleEvaluation(True, matched, unmatched))
        if rule.match_mode == MatchMode.ALL and not result.matched:
            return Result.success(RuleEvaluation(False, matched, unmatched))

    if errors:
        logger.warning("Rule conditions failed to evaluate", rule_id=rule.id, errors=len(errors))
        return Result.failure(
            "CONDITION_ERROR",
            f"{len(errors)} condition(s) failed to evaluate",
            rule_id=rule.id,
            condition_errors=errors,
        )

    if rule.match_mode == MatchMode.ALL:
        matches = not unmatched and bool(matched)
    else:
        matches = bool(matched)
    return Result.success(RuleEvaluation(matches, matched, unmatched))


def rule_matches(rule: MetadataPatternRule, metadata: UnifiedMetadata) -> bool:
    """Whether an enabled rule evaluates cleanly and matches."""
    result = evaluate_rule(rule, metadata)
    return result.ok and result.value is not None and result.value.matches


def find_matching_rule(
    rules: Iterable[MetadataPatternRule], metadata: UnifiedMetadata
) -> MetadataPatternRule | None:
    """Highest-priority enabled rule that matches; ties keep list order."""
    for rule in sorted(rules, key=lambda r: -r.priority):
        if rule.enabled and rule_matches(rule, metadata):
            return rule
    return None
