from taskboard.errors import InvalidArgumentError
from taskboard.models.tasks import TASK_STATUSES

MIN_PASSWORD_LENGTH = 6


def parse_id(value, message: str) -> int:
    """Accept positive integers or their decimal string form."""
    if isinstance(value, bool):
        raise InvalidArgumentError(message)
    if isinstance(value, str):
        value = value.strip()
        # str.isdigit() also accepts digits int() cannot parse, such as "²"
        if not (value.isascii() and value.isdigit()):
            raise InvalidArgumentError(message)
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        raise InvalidArgumentError(message)
    return value


def check_password(password: str | None):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidArgumentError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def is_valid_status(status: str | None) -> bool:
    return status in TASK_STATUSES
