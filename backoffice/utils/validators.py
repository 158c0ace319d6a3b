"""Input parsing helpers raising ValidationError with the offending field."""
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation

from backoffice.exceptions import ValidationError
from backoffice.utils.money import MAX_MONEY, to_money

DATE_DMY_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4}$")
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def parse_positive_int(value, field: str) -> int:
    """Parse an integer > 0; accepts int or digit strings, rejects bools and floats."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f'{field} must be a positive integer', field)
    if isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise ValidationError(f'{field} must be a positive integer', field)
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        raise ValidationError(f'{field} must be a positive integer', field)
    return value


def parse_non_negative_int(value, field: str) -> int:
    """Parse an integer >= 0."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f'{field} must be a non-negative integer', field)
    if isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise ValidationError(f'{field} must be a non-negative integer', field)
        value = int(value)
    if not isinstance(value, int) or value < 0:
        raise ValidationError(f'{field} must be a non-negative integer', field)
    return value


def parse_decimal(value, field: str, minimum=None, maximum=None, allow_equal_min=True) -> Decimal:
    """
    Parse a finite number into Decimal and check optional bounds.

    Raises:
        ValidationError: if the value is missing, not numeric or out of range.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f'{field} must be a number', field)
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field} must be a number', field)
    if not number.is_finite():
        raise ValidationError(f'{field} must be a number', field)

    if minimum is not None:
        below = number < minimum if allow_equal_min else number <= minimum
        if below:
            relation = 'at least' if allow_equal_min else 'greater than'
            raise ValidationError(f'{field} must be {relation} {minimum}', field)
    if maximum is not None and number > maximum:
        raise ValidationError(f'{field} must be at most {maximum}', field)
    return number


def parse_money(value, field: str, minimum=Decimal('0'), allow_equal_min=True) -> Decimal:
    """Parse an amount that fits a Numeric(12, 2) column, quantized to cents."""
    number = parse_decimal(value, field, minimum=minimum, maximum=MAX_MONEY,
                           allow_equal_min=allow_equal_min)
    try:
        return to_money(number)
    except InvalidOperation:
        raise ValidationError(f'{field} must be a valid amount', field)


def require_text(value, field: str, max_length: int = 255) -> str:
    """Return a stripped, non-empty string."""
    if value is None or not str(value).strip():
        raise ValidationError(f'{field} is required', field)
    text = str(value).strip()
    if len(text) > max_length:
        raise ValidationError(f'{field} must be at most {max_length} characters', field)
    return text


def parse_email(value, field: str = 'email') -> str:
    email = require_text(value, field).lower()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError(f'{field} must be a valid email address', field)
    return email


def parse_date_dmy(value, field: str) -> datetime:
    """Parse a DD/MM/YYYY date (e.g. 01/10/2025)."""
    if not value:
        raise ValidationError(f'{field} is required', field)
    if not DATE_DMY_PATTERN.match(value):
        raise ValidationError(f'{field} must be in DD/MM/YYYY format (e.g., 01/10/2025)', field)
    try:
        return datetime.strptime(value, '%d/%m/%Y')
    except ValueError:
        raise ValidationError(f'{field} is not a valid date', field)


def parse_iso_datetime(value, field: str) -> datetime:
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f'{field} must be a valid date (ISO 8601 format)', field)


def get_json_body(request) -> dict:
    """Return the JSON object body of a request or raise ValidationError."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data
