"""
Tests for input validation utilities
"""
import pytest
from validators import (
    ValidationError,
    raise_if_invalid,
    validate_required_fields,
    validate_string_length,
    validate_number_range,
    validate_iso_date,
    sanitize_string,
    validate_action_step,
    validate_goal_create,
    validate_goal_update,
    validate_job_request,
    validate_analytic_request,
    validate_chat_message,
    validate_article_request,
    validate_role,
    format_validation_error,
    MAX_MESSAGE_LENGTH,
)


@pytest.mark.unit
class TestRequiredFields:
    """Tests for required fields validation"""

    def test_validate_all_fields_present(self):
        """Test validation passes when all fields present"""
        data = {'type': 'Wash', 'leadSource': 'Google'}
        is_valid, error = validate_required_fields(data, ['type', 'leadSource'])
        assert is_valid is True
        assert error is None

    def test_validate_missing_field(self):
        """Test validation fails when field missing"""
        data = {'type': 'Wash'}
        is_valid, error = validate_required_fields(data, ['type', 'leadSource'])
        assert is_valid is False
        assert 'leadSource' in error

    def test_validate_empty_field(self):
        """Test validation fails when field is empty string"""
        data = {'type': 'Wash', 'leadSource': ''}
        is_valid, error = validate_required_fields(data, ['type', 'leadSource'])
        assert is_valid is False

    def test_validate_none_field(self):
        """Test validation fails when field is None"""
        data = {'type': 'Wash', 'leadSource': None}
        is_valid, error = validate_required_fields(data, ['type', 'leadSource'])
        assert is_valid is False

    def test_zero_counts_as_present(self):
        """Test that a numeric zero is not treated as missing"""
        is_valid, error = validate_required_fields({'currentValue': 0}, ['currentValue'])
        assert is_valid is True


@pytest.mark.unit
class TestStringValidation:
    """Tests for string length validation"""

    def test_valid_string_length(self):
        """Test string within length limits passes"""
        is_valid, error = validate_string_length('test', min_length=1, max_length=10)
        assert is_valid is True

    def test_string_too_short(self):
        """Test string below minimum fails"""
        is_valid, error = validate_string_length('a', min_length=5)
        assert is_valid is False

    def test_whitespace_only_is_too_short(self):
        """Test whitespace does not count toward the minimum"""
        is_valid, error = validate_string_length('   ', min_length=1)
        assert is_valid is False

    def test_string_too_long(self):
        """Test string above maximum fails"""
        is_valid, error = validate_string_length('a' * 100, max_length=50)
        assert is_valid is False

    def test_non_string_value(self):
        """Test non-string value fails"""
        is_valid, error = validate_string_length(123)
        assert is_valid is False


@pytest.mark.unit
class TestNumberValidation:
    """Tests for number range validation"""

    def test_valid_number_in_range(self):
        """Test number within range passes"""
        is_valid, error = validate_number_range(5, min_value=0, max_value=10)
        assert is_valid is True

    def test_number_below_minimum(self):
        """Test number below minimum fails"""
        is_valid, error = validate_number_range(-5, min_value=0)
        assert is_valid is False

    def test_number_above_maximum(self):
        """Test number above maximum fails"""
        is_valid, error = validate_number_range(15, max_value=10)
        assert is_valid is False

    def test_exclusive_minimum(self):
        """Test exclusive minimum rejects the bound itself"""
        assert validate_number_range(0, min_value=0, exclusive_min=True)[0] is False
        assert validate_number_range(0.01, min_value=0, exclusive_min=True)[0] is True

    def test_non_number_value(self):
        """Test non-number value fails"""
        is_valid, error = validate_number_range('not a number')
        assert is_valid is False

    def test_bool_is_not_a_number(self):
        """Test booleans are rejected"""
        assert validate_number_range(True)[0] is False

    def test_nan_rejected(self):
        """Test NaN is rejected"""
        assert validate_number_range(float('nan'))[0] is False


@pytest.mark.unit
class TestDateValidation:
    """Tests for ISO calendar dates"""

    def test_valid_date(self):
        assert validate_iso_date('2024-02-29') == (True, None)

    @pytest.mark.parametrize('value', ['2023-02-29', '2024-00-10', '2024-7-1', '2024-07-01T10:00:00', None])
    def test_invalid_dates(self, value):
        assert validate_iso_date(value)[0] is False


@pytest.mark.unit
class TestStringsanitization:
    """Tests for string sanitization"""

    def test_sanitize_removes_null_bytes(self):
        """Test sanitization removes null bytes"""
        result = sanitize_string('test\x00string')
        assert '\x00' not in result

    def test_sanitize_trims_whitespace(self):
        """Test sanitization trims whitespace"""
        result = sanitize_string('  test  ')
        assert result == 'test'

    def test_sanitize_limits_length(self):
        """Test sanitization limits length"""
        result = sanitize_string('a' * 2000, max_length=100)
        assert len(result) == 100

    def test_sanitize_handles_non_string(self):
        """Test sanitization handles non-string input"""
        result = sanitize_string(123)
        assert result == '123'


@pytest.mark.unit
class TestGoalValidation:
    """Tests for goal create/update payloads"""

    def test_valid_goal(self):
        data = {'description': 'Reach $10k', 'targetValue': 10000, 'currentValue': 0}
        assert validate_goal_create(data) == (True, None)

    def test_goal_missing_target(self):
        is_valid, error = validate_goal_create({'description': 'Reach $10k', 'currentValue': 0})
        assert is_valid is False
        assert 'targetValue' in error

    def test_update_rejects_unknown_fields(self):
        is_valid, error = validate_goal_update({'orgId': 'other'})
        assert is_valid is False
        assert 'orgId' in error

    def test_update_accepts_empty_patch(self):
        assert validate_goal_update({}) == (True, None)

    def test_update_validates_plan_steps(self):
        plan = [{'description': 'Step', 'completed': False}, {'description': '', 'completed': False}]
        is_valid, error = validate_goal_update({'actionPlan': plan})
        assert is_valid is False
        assert error.startswith('Action step 1')

    def test_update_rejects_non_list_plan(self):
        assert validate_goal_update({'actionPlan': {'steps': []}})[0] is False


@pytest.mark.unit
class TestActionStepValidation:
    """Tests for action steps and partial step edits"""

    def test_full_step(self):
        step = {'description': 'Call fleet customers', 'completed': False, 'dueDate': '2024-08-01', 'notes': 'Mon'}
        assert validate_action_step(step) == (True, None)

    def test_full_step_requires_completed(self):
        assert validate_action_step({'description': 'Call'})[0] is False

    def test_partial_step_without_description(self):
        assert validate_action_step({'completed': True}, require_description=False) == (True, None)

    def test_partial_step_clearing_due_date(self):
        assert validate_action_step({'dueDate': None}, require_description=False) == (True, None)

    def test_completed_must_be_bool(self):
        assert validate_action_step({'completed': 'yes'}, require_description=False)[0] is False

    def test_unknown_step_field(self):
        assert validate_action_step({'priority': 'high'}, require_description=False)[0] is False

    def test_notes_must_be_string(self):
        assert validate_action_step({'notes': 5}, require_description=False)[0] is False


@pytest.mark.unit
class TestJobValidation:
    """Tests for job and metric payloads"""

    def test_valid_job(self):
        data = {'type': 'Full Detail', 'value': 250, 'leadSource': 'Google', 'date': '2024-07-20'}
        assert validate_job_request(data) == (True, None)

    def test_job_value_must_be_positive(self):
        data = {'type': 'Full Detail', 'value': 0, 'leadSource': 'Google', 'date': '2024-07-20'}
        assert validate_job_request(data)[0] is False

    def test_analytic_allows_negative_value(self):
        data = {'dataType': 'Refunds', 'value': -40, 'date': '2024-07-20'}
        assert validate_analytic_request(data) == (True, None)

    def test_analytic_details_must_be_object(self):
        data = {'dataType': 'Marketing Spend', 'value': 40, 'date': '2024-07-20', 'details': 'Google'}
        assert validate_analytic_request(data)[0] is False


@pytest.mark.unit
class TestChatAndArticleValidation:
    """Tests for chat messages, articles and roles"""

    def test_valid_message(self):
        assert validate_chat_message('How do I grow?') == (True, None)

    def test_message_too_long(self):
        assert validate_chat_message('a' * (MAX_MESSAGE_LENGTH + 1))[0] is False

    def test_message_must_be_string(self):
        assert validate_chat_message(None)[0] is False

    def test_article_requires_text(self):
        is_valid, error = validate_article_request({'title': 'Waxing'})
        assert is_valid is False
        assert 'text' in error

    @pytest.mark.parametrize('role,expected', [('admin', True), ('member', True), ('client', True), ('owner', False)])
    def test_role_names(self, role, expected):
        assert validate_role(role)[0] is expected


@pytest.mark.unit
class TestErrorHelpers:
    """Tests for validation error plumbing"""

    def test_raise_if_invalid_passes(self):
        raise_if_invalid((True, None))

    def test_raise_if_invalid_raises_with_field(self):
        with pytest.raises(ValidationError) as exc_info:
            raise_if_invalid((False, 'bad'), 'name')
        assert exc_info.value.message == 'bad'
        assert exc_info.value.field == 'name'

    def test_format_validation_error(self):
        assert format_validation_error('name', 'bad') == {
            'error': 'Validation Error',
            'field': 'name',
            'message': 'bad'
        }
