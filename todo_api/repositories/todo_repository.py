from typing import List
import logging

from todo_api.models.database import TODOS_COLLECTION, Transaction
from todo_api.models.domain.todo import Todo
from todo_api.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)

class TodoRepository(BaseRepository[Todo]):
    """
    Todo persistence inside a caller-supplied transaction.

    Ids come only from the collection's sequence, so they grow
    monotonically and are never handed out twice, even after deletes.
    Update is an upsert and delete never checks for existence.
    """

    def __init__(self, tx: Transaction):
        super().__init__(tx, Todo, TODOS_COLLECTION)

    def list_all(self) -> List[Todo]:
        return self.get_all()

    def get(self, todo_id: int) -> Todo | None:
        return self.get_by_id(todo_id)

    def create(self, todo: Todo) -> Todo:
        todo_id = self.collection.next_sequence()
        created = todo.model_copy(update={"id": todo_id})
        self.save(todo_id, created)
        logger.info(f"Created Todo with id {todo_id}")
        return created

    def upsert(self, todo_id: int, todo: Todo) -> Todo:
        written = todo.model_copy(update={"id": todo_id})
        return self.save(todo_id, written)
