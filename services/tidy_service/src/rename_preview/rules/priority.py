"""Priority management across both rule kinds."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from ..models import FilenamePatternRule, MetadataPatternRule, RulePriorityMode, RuleType
from ..results import Result, RuleErrorCode

Rule = MetadataPatternRule | FilenamePatternRule


@dataclass(frozen=True)
class UnifiedRule:
    """A rule of either kind, seen through its ordering attributes."""

    id: str
    name: str
    rule_type: RuleType
    priority: int
    enabled: bool
    template_id: str
    rule: Rule

    @classmethod
    def from_rule(cls, rule: Rule) -> UnifiedRule:
        rule_type = RuleType.METADATA if isinstance(rule, MetadataPatternRule) else RuleType.FILENAME
        return cls(
            id=rule.id,
            name=rule.name,
            rule_type=rule_type,
            priority=rule.priority,
            enabled=rule.enabled,
            template_id=rule.template_id,
            rule=rule,
        )


@dataclass(frozen=True)
class RuleSetUpdate:
    """Both rule lists after a priority change."""

    metadata_rules: list[MetadataPatternRule]
    filename_rules: list[FilenamePatternRule]


def _sort(rules: list[UnifiedRule]) -> list[UnifiedRule]:
    # sorted() is stable, so equal priorities keep configuration order
    return sorted(rules, key=lambda r: -r.priority)


def get_unified_rule_priorities(
    metadata_rules: Sequence[MetadataPatternRule],
    filename_rules: Sequence[FilenamePatternRule],
    mode: RulePriorityMode = RulePriorityMode.COMBINED,
) -> list[UnifiedRule]:
    """All rules in the order the resolver evaluates them under a mode."""
    metadata = _sort([UnifiedRule.from_rule(r) for r in metadata_rules])
    filename = _sort([UnifiedRule.from_rule(r) for r in filename_rules])

    mode = RulePriorityMode(mode)
    if mode == RulePriorityMode.METADATA_FIRST:
        return metadata + filename
    if mode == RulePriorityMode.FILENAME_FIRST:
        return filename + metadata
    return _sort(metadata + filename)


def set_unified_rule_priority(
    metadata_rules: Sequence[MetadataPatternRule],
    filename_rules: Sequence[FilenamePatternRule],
    rule_id: str,
    priority: int,
) -> Result[RuleSetUpdate]:
    """Set one rule's priority, whichever kind it is.

    Returns:
        Result holding the updated lists, or a VALIDATION_FAILED error for a
        negative priority or RULE_NOT_FOUND for an unknown id
    """
    if not isinstance(priority, int) or isinstance(priority, bool) or priority < 0:
        return Result.failure(
            RuleErrorCode.VALIDATION_FAILED, "Priority must be a non-negative integer", priority=priority
        )

    now = datetime.now(UTC)
    found = False

    def _apply(rules: Sequence[Rule]) -> list:
        nonlocal found
        updated = []
        for rule in rules:
            if rule.id == rule_id:
                found = True
                if rule.priority != priority:
                    rule = rule.model_copy(update={"priority": priority, "updated_at": now})
            updated.append(rule)
        return updated

    new_metadata = _apply(metadata_rules)
    new_filename = _apply(filename_rules)
    if not found:
        return Result.failure(RuleErrorCode.RULE_NOT_FOUND, f'Rule with ID "{rule_id}" not found', rule_id=rule_id)
    return Result.success(RuleSetUpdate(new_metadata, new_filename))


def reorder_unified_rules(
    metadata_rules: Sequence[MetadataPatternRule],
    filename_rules: Sequence[FilenamePatternRule],
    ordered_ids: Sequence[str],
) -> Result[RuleSetUpdate]:
    """Assign priorities to rules of both kinds by position.

    The first id gets priority ``len(ordered_ids)``, the last gets 1. Rules
    not listed drop to priority 0, below every listed rule. List order of
    each kind is preserved.

    Args:
        metadata_rules: Metadata pattern rules
        filename_rules: Filename pattern rules
        ordered_ids: Rule ids, highest priority first

    Returns:
        Result holding the updated lists, or VALIDATION_FAILED for duplicate
        ids and RULE_NOT_FOUND for unknown ones
    """
    if len(set(ordered_ids)) != len(ordered_ids):
        return Result.failure(
            RuleErrorCode.VALIDATION_FAILED, "Duplicate IDs in order array", ordered_ids=list(ordered_ids)
        )

    known = {r.id for r in metadata_rules} | {r.id for r in filename_rules}
    for rule_id in ordered_ids:
        if rule_id not in known:
            return Result.failure(
                RuleErrorCode.RULE_NOT_FOUND, f'Rule with ID "{rule_id}" not found', rule_id=rule_id
            )

    now = datetime.now(UTC)
    priorities = {rule_id: len(ordered_ids) - i for i, rule_id in enumerate(ordered_ids)}

    def _apply(rules: Sequence[Rule]) -> list:
        updated = []
        for rule in rules:
            priority = priorities.get(rule.id, 0)
            if rule.priority != priority:
                rule = rule.model_copy(update={"priority": priority, "updated_at": now})
            updated.append(rule)
        return updated

    return Result.success(RuleSetUpdate(_apply(metadata_rules), _apply(filename_rules)))
