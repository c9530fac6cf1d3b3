"""In-memory management of metadata and filename pattern rules."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError

from ..models import FilenamePatternRule, MetadataPatternRule, RuleCondition, RuleOperator, RuleType, Template
from ..results import Result, RuleErrorCode
from .conditions import is_valid_regex
from .field_resolver import is_valid_field_path
from .glob_matcher import validate_glob_pattern

logger = structlog.get_logger(__name__)

Rule = MetadataPatternRule | FilenamePatternRule

_RULE_MODELS: dict[RuleType, type[MetadataPatternRule] | type[FilenamePatternRule]] = {
    RuleType.METADATA: MetadataPatternRule,
    RuleType.FILENAME: FilenamePatternRule,
}

# Fields callers may not change through update_rule.
_IMMUTABLE_FIELDS = frozenset({"id", "created_at", "updated_at"})


def _validation_details(error: ValidationError) -> list[dict[str, Any]]:
    return [{"loc": ".".join(str(p) for p in e["loc"]), "msg": e["msg"]} for e in error.errors()]


def validate_conditions(conditions: Iterable[RuleCondition]) -> Result[None]:
    """Check condition field paths and regex patterns.

    Returns:
        Empty success, or an ``INVALID_FIELD_PATH`` / ``INVALID_REGEX`` error
    """
    conditions = list(conditions)
    invalid_paths = [c.field for c in conditions if not is_valid_field_path(c.field)]
    if invalid_paths:
        return Result.failure(
            RuleErrorCode.INVALID_FIELD_PATH,
            f"Invalid field path(s): {', '.join(invalid_paths)}",
            invalid_paths=invalid_paths,
        )

    invalid_regex = [
        c.value or "" for c in conditions if c.operator == RuleOperator.REGEX and not is_valid_regex(c.value or "")
    ]
    if invalid_regex:
        return Result.failure(
            RuleErrorCode.INVALID_REGEX, "Invalid regex pattern(s) in conditions", invalid_regex=invalid_regex
        )
    return Result.success(None)


class RuleManager:
    """CRUD over the configured rule lists.

    Both rule kinds share one implementation; the ``*_filename_rule`` methods
    are thin wrappers. Every operation returns a Result with a RuleErrorCode
    on failure and leaves the lists untouched in that case.
    """

    def __init__(
        self,
        metadata_rules: Sequence[MetadataPatternRule] | None = None,
        filename_rules: Sequence[FilenamePatternRule] | None = None,
        templates: Sequence[Template] | None = None,
    ):
        """Initialize the manager.

        Args:
            metadata_rules: Initial metadata pattern rules
            filename_rules: Initial filename pattern rules
            templates: Known templates; when None template ids are not checked
        """
        self._rules: dict[RuleType, list[Any]] = {
            RuleType.METADATA: list(metadata_rules or []),
            RuleType.FILENAME: list(filename_rules or []),
        }
        self.templates = list(templates) if templates is not None else None

    @property
    def metadata_rules(self) -> list[MetadataPatternRule]:
        return list(self._rules[RuleType.METADATA])

    @property
    def filename_rules(self) -> list[FilenamePatternRule]:
        return list(self._rules[RuleType.FILENAME])

    # Shared implementation

    def _find(self, kind: RuleType, rule_id: str) -> int:
        return next((i for i, r in enumerate(self._rules[kind]) if r.id == rule_id), -1)

    def _not_found(self, rule_id: str) -> Result[Any]:
        return Result.failure(RuleErrorCode.RULE_NOT_FOUND, f'Rule with ID "{rule_id}" not found', rule_id=rule_id)

    def _name_taken(self, kind: RuleType, name: str, exclude_id: str | None = None) -> bool:
        return any(r.name.lower() == name.lower() and r.id != exclude_id for r in self._rules[kind])

    def _check(self, rule: Rule) -> Result[None]:
        """Semantic validation beyond the model schema."""
        if isinstance(rule, MetadataPatternRule):
            checked = validate_conditions(rule.conditions)
            if not checked.ok:
                return checked
        else:
            validation = validate_glob_pattern(rule.pattern)
            if not validation.valid:
                return Result.failure(
                    RuleErrorCode.INVALID_PATTERN,
                    f"Invalid glob pattern: {validation.error}",
                    pattern=rule.pattern,
                    position=validation.position,
                )

        if self.templates is not None and not any(t.id == rule.template_id for t in self.templates):
            return Result.failure(
                RuleErrorCode.TEMPLATE_NOT_FOUND,
                f'Template "{rule.template_id}" not found',
                template_id=rule.template_id,
            )
        return Result.success(None)

    def _create(self, kind: RuleType, fields: dict[str, Any]) -> Result[Any]:
        now = datetime.now(UTC)
        try:
            rule = _RULE_MODELS[kind].model_validate(
                {**fields, "id": str(uuid.uuid4()), "created_at": now, "updated_at": now}
            )
        except ValidationError as e:
            return Result.failure(RuleErrorCode.VALIDATION_FAILED, "Invalid rule input", errors=_validation_details(e))

        checked = self._check(rule)
        if not checked.ok:
            return checked

        if self._name_taken(kind, rule.name):
            return Result.failure(RuleErrorCode.DUPLICATE_RULE_NAME, f'A rule named "{rule.name}" already exists')

        self._rules[kind].append(rule)
        logger.info("Rule created", rule_id=rule.id, rule_type=kind.value, name=rule.name)
        return Result.success(rule)

    def _get(self, kind: RuleType, rule_id: str) -> Result[Any]:
        index = self._find(kind, rule_id)
        if index == -1:
            return self._not_found(rule_id)
        return Result.success(self._rules[kind][index])

    def _get_by_name(self, kind: RuleType, name: str) -> Result[Any]:
        rule = next((r for r in self._rules[kind] if r.name.lower() == name.lower()), None)
        if rule is None:
            return Result.failure(RuleErrorCode.RULE_NOT_FOUND, f'Rule named "{name}" not found', name=name)
        return Result.success(rule)

    def _update(self, kind: RuleType, rule_id: str, changes: dict[str, Any]) -> Result[Any]:
        index = self._find(kind, rule_id)
        if index == -1:
            return self._not_found(rule_id)

        existing = self._rules[kind][index]
        changes = {k: v for k, v in changes.items() if k not in _IMMUTABLE_FIELDS}
        try:
            updated = _RULE_MODELS[kind].model_validate(
                {**existing.model_dump(), **changes, "updated_at": datetime.now(UTC)}
            )
        except ValidationError as e:
            return Result.failure(
                RuleErrorCode.VALIDATION_FAILED, "Invalid update input", errors=_validation_details(e)
            )

        checked = self._check(updated)
        if not checked.ok:
            return checked

        if self._name_taken(kind, updated.name, exclude_id=rule_id):
            return Result.failure(RuleErrorCode.DUPLICATE_RULE_NAME, f'A rule named "{updated.name}" already exists')

        self._rules[kind][index] = updated
        return Result.success(updated)

    def _delete(self, kind: RuleType, rule_id: str) -> Result[Any]:
        index = self._find(kind, rule_id)
        if index == -1:
            return self._not_found(rule_id)
        removed = self._rules[kind].pop(index)
        logger.info("Rule deleted", rule_id=rule_id, rule_type=kind.value)
        return Result.success(removed)

    def _toggle(self, kind: RuleType, rule_id: str) -> Result[Any]:
        index = self._find(kind, rule_id)
        if index == -1:
            return self._not_found(rule_id)
        rule = self._rules[kind][index]
        updated = rule.model_copy(update={"enabled": not rule.enabled, "updated_at": datetime.now(UTC)})
        self._rules[kind][index] = updated
        return Result.success(updated)

    def _set_priority(self, kind: RuleType, rule_id: str, priority: int) -> Result[Any]:
        if not isinstance(priority, int) or isinstance(priority, bool) or priority < 0:
            return Result.failure(
                RuleErrorCode.VALIDATION_FAILED, "Priority must be a non-negative integer", priority=priority
            )
        index = self._find(kind, rule_id)
        if index == -1:
            return self._not_found(rule_id)
        rule = self._rules[kind][index]
        if rule.priority != priority:
            rule = rule.model_copy(update={"priority": priority, "updated_at": datetime.now(UTC)})
            self._rules[kind][index] = rule
        return Result.success(rule)

    def _reorder(self, kind: RuleType, ordered_ids: Sequence[str]) -> Result[Any]:
        """Assign priorities by position, first id highest.

        Listed rules get priorities ``len(ordered_ids)`` down to 1 and come
        first; unlisted rules drop to priority 0 and keep their relative order.
        """
        rules = self._rules[kind]
        known = {r.id for r in rules}
        for rule_id in ordered_ids:
            if rule_id not in known:
                return self._not_found(rule_id)
        if len(set(ordered_ids)) != len(ordered_ids):
            return Result.failure(
                RuleErrorCode.VALIDATION_FAILED, "Duplicate IDs in order array", ordered_ids=list(ordered_ids)
            )

        now = datetime.now(UTC)
        by_id = {r.id: r for r in rules}
        priorities = {rule_id: len(ordered_ids) - i for i, rule_id in enumerate(ordered_ids)}

        def _with_priority(rule: Any, priority: int) -> Any:
            if rule.priority == priority:
                return rule
            return rule.model_copy(update={"priority": priority, "updated_at": now})

        reordered = [_with_priority(by_id[rule_id], priorities[rule_id]) for rule_id in ordered_ids]
        reordered += [_with_priority(r, 0) for r in rules if r.id not in priorities]
        self._rules[kind] = reordered
        return Result.success(list(reordered))

    # Metadata pattern rules

    def create_rule(self, **fields: Any) -> Result[MetadataPatternRule]:
        """Create a metadata pattern rule.

        Args:
            **fields: MetadataPatternRule fields except id and timestamps

        Returns:
            Result holding the new rule, or a VALIDATION_FAILED,
            INVALID_FIELD_PATH, INVALID_REGEX, TEMPLATE_NOT_FOUND or
            DUPLICATE_RULE_NAME error
        """
        return self._create(RuleType.METADATA, fields)

    def get_rule(self, rule_id: str) -> Result[MetadataPatternRule]:
        return self._get(RuleType.METADATA, rule_id)

    def get_rule_by_name(self, name: str) -> Result[MetadataPatternRule]:
        """Look a rule up by name, case-insensitively."""
        return self._get_by_name(RuleType.METADATA, name)

    def update_rule(self, rule_id: str, **changes: Any) -> Result[MetadataPatternRule]:
        return self._update(RuleType.METADATA, rule_id, changes)

    def delete_rule(self, rule_id: str) -> Result[MetadataPatternRule]:
        return self._delete(RuleType.METADATA, rule_id)

    def toggle_rule(self, rule_id: str) -> Result[MetadataPatternRule]:
        return self._toggle(RuleType.METADATA, rule_id)

    def set_rule_priority(self, rule_id: str, priority: int) -> Result[MetadataPatternRule]:
        return self._set_priority(RuleType.METADATA, rule_id, priority)

    def reorder_rules(self, ordered_ids: Sequence[str]) -> Result[list[MetadataPatternRule]]:
        return self._reorder(RuleType.METADATA, ordered_ids)

    def list_rules(self) -> list[MetadataPatternRule]:
        """Metadata rules, highest priority first."""
        return sorted(self._rules[RuleType.METADATA], key=lambda r: -r.priority)

    def list_enabled_rules(self) -> list[MetadataPatternRule]:
        return [r for r in self.list_rules() if r.enabled]

    # Filename pattern rules

    def create_filename_rule(self, **fields: Any) -> Result[FilenamePatternRule]:
        """Create a filename pattern rule.

        Args:
            **fields: FilenamePatternRule fields except id and timestamps

        Returns:
            Result holding the new rule, or a VALIDATION_FAILED,
            INVALID_PATTERN, TEMPLATE_NOT_FOUND or DUPLICATE_RULE_NAME error
        """
        return self._create(RuleType.FILENAME, fields)

    def get_filename_rule(self, rule_id: str) -> Result[FilenamePatternRule]:
        return self._get(RuleType.FILENAME, rule_id)

    def get_filename_rule_by_name(self, name: str) -> Result[FilenamePatternRule]:
        return self._get_by_name(RuleType.FILENAME, name)

    def update_filename_rule(self, rule_id: str, **changes: Any) -> Result[FilenamePatternRule]:
        return self._update(RuleType.FILENAME, rule_id, changes)

    def delete_filename_rule(self, rule_id: str) -> Result[FilenamePatternRule]:
        return self._delete(RuleType.FILENAME, rule_id)

    def toggle_filename_rule(self, rule_id: str) -> Result[FilenamePatternRule]:
        return self._toggle(RuleType.FILENAME, rule_id)

    def set_filename_rule_priority(self, rule_id: str, priority: int) -> Result[FilenamePatternRule]:
        return self._set_priority(RuleType.FILENAME, rule_id, priority)

    def reorder_filename_rules(self, ordered_ids: Sequence[str]) -> Result[list[FilenamePatternRule]]:
        return self._reorder(RuleType.FILENAME, ordered_ids)

    def list_filename_rules(self) -> list[FilenamePatternRule]:
        return sorted(self._rules[RuleType.FILENAME], key=lambda r: -r.priority)

    def list_enabled_filename_rules(self) -> list[FilenamePatternRule]:
        return [r for r in self.list_filename_rules() if r.enabled]
