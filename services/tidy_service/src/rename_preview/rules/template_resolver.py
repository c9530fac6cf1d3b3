"""Rule-based template selection."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from ..models import (
    AppliedRule,
    FileInfo,
    FilenamePatternRule,
    MetadataPatternRule,
    RenameIssue,
    RulePriorityMode,
    RuleType,
    Template,
    TemplateSource,
    UnifiedMetadata,
)
from ..results import IssueCode
from .conditions import rule_matches
from .glob_matcher import evaluate_filename_rule

logger = structlog.get_logger(__name__)

Rule = MetadataPatternRule | FilenamePatternRule


@dataclass(frozen=True)
class RuleMatch:
    """A rule that matched a file."""

    rule_id: str
    rule_name: str
    rule_type: RuleType
    template_id: str
    priority: int
    folder_structure_id: str | None = None

    @classmethod
    def from_rule(cls, rule: Rule) -> RuleMatch:
        rule_type = RuleType.METADATA if isinstance(rule, MetadataPatternRule) else RuleType.FILENAME
        return cls(
            rule_id=rule.id,
            rule_name=rule.name,
            rule_type=rule_type,
            template_id=rule.template_id,
            priority=rule.priority,
            folder_structure_id=rule.folder_structure_id,
        )

    def to_applied_rule(self) -> AppliedRule:
        return AppliedRule(rule_id=self.rule_id, rule_name=self.rule_name, rule_type=self.rule_type)


@dataclass
class TemplateResolution:
    """The template chosen for a file and why."""

    template: Template
    template_source: TemplateSource
    applied_rule: AppliedRule | None = None
    folder_structure_id: str | None = None
    issues: list[RenameIssue] = field(default_factory=list)


def _by_priority(rules: Sequence[Rule]) -> list[Rule]:
    # sorted() is stable, so equal priorities keep configuration order
    return sorted((r for r in rules if r.enabled), key=lambda r: -r.priority)


def _matches(rule: Rule, file: FileInfo, metadata: UnifiedMetadata) -> bool:
    if isinstance(rule, MetadataPatternRule):
        return rule_matches(rule, metadata)
    result = evaluate_filename_rule(rule, file)
    if not result.ok:
        assert result.error is not None
        logger.warning("Skipping filename rule with invalid pattern", rule_id=rule.id, error=result.error.message)
        return False
    return bool(result.value)


def _collect(rules: Sequence[Rule], file: FileInfo, metadata: UnifiedMetadata) -> list[RuleMatch]:
    return [RuleMatch.from_rule(r) for r in rules if _matches(r, file, metadata)]


def find_matching_rules(
    metadata_rules: Sequence[MetadataPatternRule],
    filename_rules: Sequence[FilenamePatternRule],
    file: FileInfo,
    metadata: UnifiedMetadata,
    mode: RulePriorityMode = RulePriorityMode.COMBINED,
) -> list[RuleMatch]:
    """All enabled rules matching a file, in evaluation order.

    ``combined`` sorts both kinds together by priority. ``metadata-first``
    and ``filename-first`` only consult the second kind when the first kind
    produced no match.

    Args:
        metadata_rules: Metadata pattern rules
        filename_rules: Filename pattern rules
        file: File being named
        metadata: Metadata record for the file
        mode: Priority mode

    Returns:
        Matching rules, best first
    """
    mode = RulePriorityMode(mode)
    if mode == RulePriorityMode.COMBINED:
        combined: list[Rule] = [*metadata_rules, *filename_rules]
        return _collect(_by_priority(combined), file, metadata)

    first: Sequence[Rule] = metadata_rules
    second: Sequence[Rule] = filename_rules
    if mode == RulePriorityMode.FILENAME_FIRST:
        first, second = second, first

    matches = _collect(_by_priority(first), file, metadata)
    return matches or _collect(_by_priority(second), file, metadata)


def resolve_template_for_rule(
    metadata_rules: Sequence[MetadataPatternRule],
    filename_rules: Sequence[FilenamePatternRule],
    file: FileInfo,
    metadata: UnifiedMetadata,
    templates: Sequence[Template],
    default_template: Template,
    mode: RulePriorityMode = RulePriorityMode.COMBINED,
) -> TemplateResolution:
    """Pick the template for one file.

    The first matching rule wins. When its template id does not exist the
    default template is used instead, with ``template_source=fallback`` and a
    ``RULE_TEMPLATE_MISSING`` issue. No match selects the default template.

    Args:
        metadata_rules: Metadata pattern rules
        filename_rules: Filename pattern rules
        file: File being named
        metadata: Metadata record for the file
        templates: Known templates
        default_template: Template used when no rule applies
        mode: Priority mode

    Returns:
        TemplateResolution
    """
    matches = find_matching_rules(metadata_rules, filename_rules, file, metadata, mode)
    if not matches:
        return TemplateResolution(template=default_template, template_source=TemplateSource.DEFAULT)

    match = matches[0]
    template = next((t for t in templates if t.id == match.template_id), None)
    if template is None:
        logger.warning(
            "Rule references a missing template, using the default",
            rule_id=match.rule_id,
            template_id=match.template_id,
        )
        issue = RenameIssue(
            code=IssueCode.RULE_TEMPLATE_MISSING.value,
            message=f'Rule "{match.rule_name}" references missing template "{match.template_id}"; '
            "the default template was used",
            field="template_id",
        )
        return TemplateResolution(
            template=default_template,
            template_source=TemplateSource.FALLBACK,
            applied_rule=match.to_applied_rule(),
            folder_structure_id=match.folder_structure_id,
            issues=[issue],
        )

    return TemplateResolution(
        template=template,
        template_source=TemplateSource.RULE,
        applied_rule=match.to_applied_rule(),
        folder_structure_id=match.folder_structure_id,
    )
