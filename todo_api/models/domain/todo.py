from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator

MAX_ID = 2**64 - 1

class Todo(BaseModel):
    id: int = Field(0, description="Assigned by the store; ignored on input")
    title: str = Field("", description="Free text, may be empty")
    completed: bool = Field(False)

    @field_validator("id", "title", "completed", mode="before")
    @classmethod
    def null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        """A JSON null leaves the field at its default, like an absent field."""
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

def encode_id(todo_id: int) -> bytes:
    """8-byte big-endian key, so key order matches id order."""
    if not 0 <= todo_id <= MAX_ID:
        raise ValueError(f"id out of range: {todo_id}")
    return todo_id.to_bytes(8, "big")

def decode_id(key: bytes) -> int:
    if len(key) != 8:
        raise ValueError(f"id key must be 8 bytes, got {len(key)}")
    return int.from_bytes(key, "big")
