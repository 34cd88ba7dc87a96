"""
Input Validation & Sanitization Utilities
Provides validation for API requests and service-layer inputs
"""
import re
import logging
from typing import Dict, Any, List, Optional, Tuple

from dateutil import parser as date_parser

from database.models import GOAL_STATUSES, ROLES

logger = logging.getLogger(__name__)

# Regex patterns
DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')

MAX_DESCRIPTION_LENGTH = 500
MAX_LABEL_LENGTH = 255
MAX_MESSAGE_LENGTH = 10000
MAX_ARTICLE_LENGTH = 50000

GOAL_UPDATE_FIELDS = ('description', 'targetValue', 'currentValue', 'status', 'actionPlan')
ACTION_STEP_FIELDS = ('description', 'completed', 'dueDate', 'notes')


class ValidationError(Exception):
    """Custom exception for validation errors"""
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


def raise_if_invalid(result: Tuple[bool, Optional[str]], field: Optional[str] = None) -> None:
    """Turn a (is_valid, error) tuple into a ValidationError"""
    is_valid, error = result
    if not is_valid:
        raise ValidationError(error, field)


def is_number(value: Any) -> bool:
    """True for ints and floats, False for bools"""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate that all required fields are present in the data

    Args:
        data: Dictionary of input data
        required_fields: List of required field names

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing_fields = [field for field in required_fields if field not in data or data[field] is None or data[field] == '']

    if missing_fields:
        return False, f"Missing required fields: {', '.join(missing_fields)}"

    return True, None


def validate_string_length(value: str, min_length: int = 0, max_length: int = 1000) -> Tuple[bool, Optional[str]]:
    """
    Validate string length is within acceptable range

    Args:
        value: String to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, "Value must be a string"

    if len(value.strip()) < min_length:
        return False, f"Value too short (minimum {min_length} characters)"

    if len(value) > max_length:
        return False, f"Value too long (maximum {max_length} characters)"

    return True, None


def validate_number_range(value: float, min_value: Optional[float] = None, max_value: Optional[float] = None,
                          exclusive_min: bool = False) -> Tuple[bool, Optional[str]]:
    """
    Validate number is within acceptable range

    Args:
        value: Number to validate
        min_value: Minimum allowed value
        max_value: Maximum allowed value
        exclusive_min: Reject values equal to min_value

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not is_number(value):
        return False, "Value must be a number"

    if value != value:  # NaN
        return False, "Value must be a number"

    if min_value is not None:
        if exclusive_min and value <= min_value:
            return False, f"Value must be greater than {min_value}"
        if value < min_value:
            return False, f"Value too small (minimum {min_value})"

    if max_value is not None and value > max_value:
        return False, f"Value too large (maximum {max_value})"

    return True, None


def validate_iso_date(value: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a calendar date in YYYY-MM-DD form

    Args:
        value: Date string

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False, "Date must be an ISO calendar date (YYYY-MM-DD)"

    try:
        date_parser.isoparse(value)
    except ValueError:
        return False, "Date is not a valid calendar date"

    return True, None


def sanitize_string(value: str, max_length: int = 1000) -> str:
    """
    Sanitize string input by removing potentially dangerous characters

    Args:
        value: String to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized string
    """
    if not isinstance(value, str):
        return str(value)

    # Remove null bytes
    sanitized = value.replace('\x00', '')

    # Trim whitespace
    sanitized = sanitized.strip()

    # Limit length
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized


def validate_action_step(step: Any, require_description: bool = True) -> Tuple[bool, Optional[str]]:
    """
    Validate a single action step (or a partial step update)

    Args:
        step: Step dictionary
        require_description: Whether description must be present

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(step, dict):
        return False, "Action step must be an object"

    unknown = [key for key in step if key not in ACTION_STEP_FIELDS]
    if unknown:
        return False, f"Unknown action step fields: {', '.join(unknown)}"

    if require_description or 'description' in step:
        is_valid, error = validate_string_length(step.get('description'), min_length=1,
                                                 max_length=MAX_DESCRIPTION_LENGTH)
        if not is_valid:
            return False, f"Invalid description: {error}"

    if require_description and not isinstance(step.get('completed'), bool):
        return False, "completed must be a boolean"
    if 'completed' in step and not isinstance(step['completed'], bool):
        return False, "completed must be a boolean"

    if step.get('dueDate') is not None:
        is_valid, error = validate_iso_date(step['dueDate'])
        if not is_valid:
            return False, f"Invalid dueDate: {error}"

    if step.get('notes') is not None and not isinstance(step['notes'], str):
        return False, "notes must be a string"

    return True, None


def validate_goal_create(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate goal creation data

    Args:
        data: Request data dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    is_valid, error = validate_required_fields(data, ['description', 'targetValue', 'currentValue'])
    if not is_valid:
        return False, error

    is_valid, error = validate_string_length(data['description'], min_length=1, max_length=MAX_DESCRIPTION_LENGTH)
    if not is_valid:
        return False, f"Invalid description: {error}"

    is_valid, error = validate_number_range(data['targetValue'], min_value=0, exclusive_min=True)
    if not is_valid:
        return False, f"Invalid targetValue: {error}"

    is_valid, error = validate_number_range(data['currentValue'], min_value=0)
    if not is_valid:
        return False, f"Invalid currentValue: {error}"

    return True, None


def validate_goal_update(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate a partial goal update

    Args:
        data: Partial goal fields

    Returns:
        Tuple of (is_valid, error_message)
    """
    unknown = [key for key in data if key not in GOAL_UPDATE_FIELDS]
    if unknown:
        return False, f"Unknown goal fields: {', '.join(unknown)}"

    if 'description' in data:
        is_valid, error = validate_string_length(data['description'], min_length=1,
                                                 max_length=MAX_DESCRIPTION_LENGTH)
        if not is_valid:
            return False, f"Invalid description: {error}"

    if 'targetValue' in data:
        is_valid, error = validate_number_range(data['targetValue'], min_value=0, exclusive_min=True)
        if not is_valid:
            return False, f"Invalid targetValue: {error}"

    if 'currentValue' in data:
        is_valid, error = validate_number_range(data['currentValue'], min_value=0)
        if not is_valid:
            return False, f"Invalid currentValue: {error}"

    if 'status' in data and data['status'] not in GOAL_STATUSES:
        return False, f"status must be one of: {', '.join(GOAL_STATUSES)}"

    if 'actionPlan' in data:
        plan = data['actionPlan']
        if not isinstance(plan, list):
            return False, "actionPlan must be an array"
        for idx, step in enumerate(plan):
            is_valid, error = validate_action_step(step)
            if not is_valid:
                return False, f"Action step {idx}: {error}"

    return True, None


def validate_job_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate job logging data

    Args:
        data: Request data dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    is_valid, error = validate_required_fields(data, ['type', 'value', 'leadSource', 'date'])
    if not is_valid:
        return False, error

    for field in ('type', 'leadSource'):
        is_valid, error = validate_string_length(data[field], min_length=1, max_length=MAX_LABEL_LENGTH)
        if not is_valid:
            return False, f"Invalid {field}: {error}"

    is_valid, error = validate_number_range(data['value'], min_value=0, exclusive_min=True)
    if not is_valid:
        return False, f"Invalid value: {error}"

    is_valid, error = validate_iso_date(data['date'])
    if not is_valid:
        return False, f"Invalid date: {error}"

    return True, None


def validate_analytic_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate a business metric entry"""
    is_valid, error = validate_required_fields(data, ['dataType', 'value', 'date'])
    if not is_valid:
        return False, error

    is_valid, error = validate_string_length(data['dataType'], min_length=1, max_length=MAX_LABEL_LENGTH)
    if not is_valid:
        return False, f"Invalid dataType: {error}"

    is_valid, error = validate_number_range(data['value'])
    if not is_valid:
        return False, f"Invalid value: {error}"

    is_valid, error = validate_iso_date(data['date'])
    if not is_valid:
        return False, f"Invalid date: {error}"

    if data.get('details') is not None and not isinstance(data['details'], dict):
        return False, "details must be an object"

    return True, None


def validate_chat_message(message: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate an advisory chat message

    Args:
        message: User message text

    Returns:
        Tuple of (is_valid, error_message)
    """
    is_valid, error = validate_string_length(message, min_length=1, max_length=MAX_MESSAGE_LENGTH)
    if not is_valid:
        return False, f"Invalid message: {error}"
    return True, None


def validate_article_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate a knowledge base article"""
    is_valid, error = validate_required_fields(data, ['title', 'text'])
    if not is_valid:
        return False, error

    is_valid, error = validate_string_length(data['title'], min_length=1, max_length=MAX_LABEL_LENGTH)
    if not is_valid:
        return False, f"Invalid title: {error}"

    is_valid, error = validate_string_length(data['text'], min_length=1, max_length=MAX_ARTICLE_LENGTH)
    if not is_valid:
        return False, f"Invalid text: {error}"

    return True, None


def validate_role(role: Any) -> Tuple[bool, Optional[str]]:
    """Validate a membership role name"""
    if role not in ROLES:
        return False, f"role must be one of: {', '.join(ROLES)}"
    return True, None


def format_validation_error(field: Optional[str], message: str) -> Dict[str, Any]:
    """
    Format validation error for consistent API responses

    Args:
        field: Field name that failed validation
        message: Error message

    Returns:
        Error response dictionary
    """
    return {
        'error': 'Validation Error',
        'field': field,
        'message': message
    }
