import re
import logging

from pydantic import ValidationError

from todo_api.core.exceptions import InvalidRequestError
from todo_api.models.domain.todo import MAX_ID, Todo

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"\+?[0-9]+")

def parse_positive_int(raw: str | int | None, default: int) -> int:
    """Parse a query value, falling back to ``default`` when absent, non-numeric or not positive."""
    if raw is None:
        return default
    if isinstance(raw, int):
        return raw if raw > 0 else default
    text = raw.strip()
    if not re.fullmatch(r"[+-]?[0-9]+", text):
        return default
    value = int(text)
    return value if value > 0 else default

def parse_todo_id(raw: str) -> int:
    if not _ID_PATTERN.fullmatch(raw):
        raise InvalidRequestError("Invalid ID")
    todo_id = int(raw)
    if todo_id > MAX_ID:
        raise InvalidRequestError("Invalid ID")
    return todo_id

def parse_todo_body(body: bytes) -> Todo:
    # A bare JSON null decodes to an all-default todo
    if body.strip() == b"null":
        return Todo()
    try:
        return Todo.model_validate_json(body, strict=True)
    except ValidationError as e:
        logger.warning(f"Rejected todo body: {str(e)}")
        raise InvalidRequestError(str(e)) from e
