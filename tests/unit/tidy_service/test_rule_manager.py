"""Unit tests for rule management."""

import pytest

from services.tidy_service.src.rename_preview.models import RuleCondition, RuleOperator, Template
from services.tidy_service.src.rename_preview.results import RuleErrorCode
from services.tidy_service.src.rename_preview.rules.manager import RuleManager, validate_conditions


def apple_conditions():
    return [{"field": "image.make", "operator": "equals", "value": "Apple"}]


class TestRuleManager:
    """Test metadata rule CRUD."""

    @pytest.fixture
    def manager(self):
        """Create a manager that knows two templates."""
        templates = [
            Template(id="default", name="Default", pattern="{date}-{original}"),
            Template(id="camera", name="Camera", pattern="{camera}-{date}"),
        ]
        return RuleManager(templates=templates)

    @pytest.fixture
    def rule(self, manager):
        """Create one metadata rule."""
        return manager.create_rule(name="iPhone", conditions=apple_conditions(), template_id="camera").unwrap()

    def test_create_rule(self, manager):
        """Test a rule gets an id and timestamps."""
        result = manager.create_rule(name="iPhone", conditions=apple_conditions(), template_id="camera")

        assert result.ok
        rule = result.value
        assert rule.id
        assert rule.created_at == rule.updated_at
        assert manager.metadata_rules == [rule]

    def test_create_rule_schema_error(self, manager):
        """Test schema violations are reported per field."""
        result = manager.create_rule(name="", conditions=[], template_id="camera")

        assert result.error.type == RuleErrorCode.VALIDATION_FAILED
        assert result.error.message == "Invalid rule input"
        locations = {e["loc"] for e in result.error.details["errors"]}
        assert {"name", "conditions"} <= locations
        assert manager.metadata_rules == []

    def test_create_rule_invalid_field_path(self, manager):
        """Test unknown field paths are rejected."""
        conditions = [{"field": "image.lens", "operator": "exists"}, {"field": "audio.bpm", "operator": "exists"}]

        result = manager.create_rule(name="Lens", conditions=conditions, template_id="camera")

        assert result.error.type == RuleErrorCode.INVALID_FIELD_PATH
        assert result.error.message == "Invalid field path(s): image.lens, audio.bpm"
        assert result.error.details["invalid_paths"] == ["image.lens", "audio.bpm"]

    def test_create_rule_invalid_regex(self, manager):
        """Test invalid regex conditions are rejected."""
        conditions = [{"field": "image.model", "operator": "regex", "value": "(iphone"}]

        result = manager.create_rule(name="Regex", conditions=conditions, template_id="camera")

        assert result.error.type == RuleErrorCode.INVALID_REGEX

    def test_create_rule_unknown_template(self, manager):
        """Test rules must reference a known template."""
        result = manager.create_rule(name="iPhone", conditions=apple_conditions(), template_id="nope")

        assert result.error.type == RuleErrorCode.TEMPLATE_NOT_FOUND
        assert result.error.message == 'Template "nope" not found'

    def test_template_check_skipped_without_templates(self):
        """Test a manager without templates accepts any template id."""
        result = RuleManager().create_rule(name="iPhone", conditions=apple_conditions(), template_id="anything")

        assert result.ok

    def test_duplicate_name_is_case_insensitive(self, manager, rule):
        """Test rule names are unique ignoring case."""
        result = manager.create_rule(name="IPHONE", conditions=apple_conditions(), template_id="camera")

        assert result.error.type == RuleErrorCode.DUPLICATE_RULE_NAME
        assert result.error.message == 'A rule named "IPHONE" already exists'

    def test_get_rule(self, manager, rule):
        """Test lookup by id and name."""
        assert manager.get_rule(rule.id).value == rule
        assert manager.get_rule_by_name("iphone").value == rule

        missing = manager.get_rule("x")
        assert missing.error.type == RuleErrorCode.RULE_NOT_FOUND
        assert missing.error.message == 'Rule with ID "x" not found'
        assert manager.get_rule_by_name("x").error.message == 'Rule named "x" not found'

    def test_update_rule(self, manager, rule):
        """Test updates keep the id and creation time."""
        result = manager.update_rule(rule.id, name="Apple phones", id="hijack", created_at=None)

        assert result.ok
        updated = result.value
        assert updated.id == rule.id
        assert updated.name == "Apple phones"
        assert updated.created_at == rule.created_at
        assert updated.updated_at >= rule.updated_at
        assert manager.get_rule(rule.id).value.name == "Apple phones"

    def test_update_rule_invalid(self, manager, rule):
        """Test invalid updates leave the rule untouched."""
        result = manager.update_rule(rule.id, priority=-1)

        assert result.error.type == RuleErrorCode.VALIDATION_FAILED
        assert result.error.message == "Invalid update input"
        assert manager.get_rule(rule.id).value.priority == 0

    def test_update_rule_duplicate_name(self, manager, rule):
        """Test renaming onto another rule's name."""
        other = manager.create_rule(name="Canon", conditions=apple_conditions(), template_id="camera").unwrap()

        result = manager.update_rule(other.id, name="iphone")

        assert result.error.type == RuleErrorCode.DUPLICATE_RULE_NAME

    def test_update_rule_keeps_own_name(self, manager, rule):
        """Test a rule can be saved under its own name."""
        assert manager.update_rule(rule.id, name="IPhone").ok

    def test_delete_rule(self, manager, rule):
        """Test deletion."""
        assert manager.delete_rule(rule.id).value == rule
        assert manager.metadata_rules == []
        assert manager.delete_rule(rule.id).error.type == RuleErrorCode.RULE_NOT_FOUND

    def test_toggle_rule(self, manager, rule):
        """Test toggling enabled state."""
        assert manager.toggle_rule(rule.id).value.enabled is False
        assert manager.list_enabled_rules() == []
        assert manager.toggle_rule(rule.id).value.enabled is True

    def test_set_rule_priority(self, manager, rule):
        """Test priority changes and validation."""
        assert manager.set_rule_priority(rule.id, 7).value.priority == 7

        result = manager.set_rule_priority(rule.id, -3)
        assert result.error.type == RuleErrorCode.VALIDATION_FAILED
        assert result.error.message == "Priority must be a non-negative integer"

    def test_list_rules_by_priority(self, manager):
        """Test listing is highest priority first."""
        low = manager.create_rule(name="Low", conditions=apple_conditions(), template_id="camera").unwrap()
        high = manager.create_rule(
            name="High", conditions=apple_conditions(), template_id="camera", priority=3
        ).unwrap()

        assert [r.id for r in manager.list_rules()] == [high.id, low.id]

    def test_reorder_rules(self, manager):
        """Test reordering assigns priorities by position."""
        ids = [
            manager.create_rule(name=name, conditions=apple_conditions(), template_id="camera").unwrap().id
            for name in ("A", "B", "C")
        ]

        result = manager.reorder_rules([ids[2], ids[0]])

        assert result.ok
        assert [(r.id, r.priority) for r in result.value] == [(ids[2], 2), (ids[0], 1), (ids[1], 0)]
        assert [r.id for r in manager.list_rules()] == [ids[2], ids[0], ids[1]]

    def test_reorder_rules_errors(self, manager, rule):
        """Test reorder validation."""
        assert manager.reorder_rules(["unknown"]).error.type == RuleErrorCode.RULE_NOT_FOUND

        duplicate = manager.reorder_rules([rule.id, rule.id])
        assert duplicate.error.type == RuleErrorCode.VALIDATION_FAILED
        assert duplicate.error.message == "Duplicate IDs in order array"


class TestFilenameRules:
    """Test filename rule CRUD."""

    @pytest.fixture
    def manager(self):
        """Create a manager without template checks."""
        return RuleManager()

    def test_create_filename_rule(self, manager):
        """Test creation of a filename rule."""
        result = manager.create_filename_rule(name="Screens", pattern="Screenshot*.png", template_id="t")

        assert result.ok
        assert manager.filename_rules == [result.value]

    def test_invalid_glob(self, manager):
        """Test malformed globs are rejected."""
        result = manager.create_filename_rule(name="Bad", pattern="*.{png", template_id="t")

        assert result.error.type == RuleErrorCode.INVALID_PATTERN
        assert result.error.message == "Invalid glob pattern: Unclosed brace expansion {"

    def test_names_are_scoped_per_kind(self, manager):
        """Test a filename rule may share a metadata rule's name."""
        manager.create_rule(name="Photos", conditions=apple_conditions(), template_id="t")

        assert manager.create_filename_rule(name="Photos", pattern="*.jpg", template_id="t").ok

    def test_filename_rule_operations(self, manager):
        """Test the remaining operations on filename rules."""
        first = manager.create_filename_rule(name="First", pattern="*.jpg", template_id="t").unwrap()
        second = manager.create_filename_rule(name="Second", pattern="*.png", template_id="t").unwrap()

        assert manager.get_filename_rule(first.id).value == first
        assert manager.get_filename_rule_by_name("second").value == second
        assert manager.update_filename_rule(first.id, pattern="*.jpeg").value.pattern == "*.jpeg"
        assert manager.toggle_filename_rule(second.id).value.enabled is False
        assert [r.id for r in manager.list_enabled_filename_rules()] == [first.id]
        assert manager.set_filename_rule_priority(second.id, 4).value.priority == 4
        assert [r.id for r in manager.list_filename_rules()] == [second.id, first.id]
        assert manager.reorder_filename_rules([first.id]).ok
        assert [r.id for r in manager.list_filename_rules()] == [first.id, second.id]
        assert manager.delete_filename_rule(second.id).ok
        assert manager.filename_rules == [manager.get_filename_rule(first.id).value]


class TestValidateConditions:
    """Test condition validation."""

    def test_valid(self):
        """Test valid conditions."""
        conditions = [RuleCondition(field="pdf.author", operator=RuleOperator.CONTAINS, value="Jane")]

        assert validate_conditions(conditions).ok

    def test_regex_checked_only_for_regex_operator(self):
        """Test a regex-looking value is fine for other operators."""
        conditions = [RuleCondition(field="pdf.title", operator=RuleOperator.CONTAINS, value="(draft")]

        assert validate_conditions(conditions).ok
