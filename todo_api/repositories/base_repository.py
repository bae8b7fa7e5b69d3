from typing import Generic, List, Type, TypeVar
import logging

from pydantic import BaseModel, ValidationError

from todo_api.core.exceptions import DecodeError
from todo_api.models.database import Collection, Transaction
from todo_api.models.domain.todo import encode_id

T = TypeVar('T', bound=BaseModel)

logger = logging.getLogger(__name__)

class BaseRepository(Generic[T]):
    """JSON documents keyed by big-endian integer ids in one collection."""

    def __init__(self, tx: Transaction, model: Type[T], collection_name: str):
        self.tx = tx
        self.model = model
        self.collection: Collection = tx.collection(collection_name)

    def _decode(self, key: bytes, value: bytes) -> T:
        try:
            return self.model.model_validate_json(value)
        except ValidationError as e:
            logger.error(f"Undecodable {self.model.__name__} at key {key.hex()}: {str(e)}")
            raise DecodeError(str(e)) from e

    def get_by_id(self, entity_id: int) -> T | None:
        value = self.collection.get(encode_id(entity_id))
        if value is None:
            return None
        return self._decode(encode_id(entity_id), value)

    def get_all(self) -> List[T]:
        return [self._decode(key, value) for key, value in self.collection.items()]

    def save(self, entity_id: int, entity: T) -> T:
        self.collection.put(encode_id(entity_id), entity.model_dump_json().encode("utf-8"))
        logger.debug(f"Saved {self.model.__name__} with id {entity_id}")
        return entity

    def delete(self, entity_id: int) -> None:
        self.collection.delete(encode_id(entity_id))
        logger.debug(f"Deleted {self.model.__name__} with id {entity_id}")
