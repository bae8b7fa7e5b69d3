import logging

from todo_api.core.exceptions import TodoNotFoundError
from todo_api.models.database import Store
from todo_api.models.domain.response import Page
from todo_api.models.domain.todo import Todo
from todo_api.repositories.todo_repository import TodoRepository
from todo_api.services.pagination import paginate

logger = logging.getLogger(__name__)

class TodoService:
    """Runs each repository operation in the transaction scope it needs."""

    def __init__(self, store: Store):
        self.store = store

    def list_todos(self, page: str | int | None = None, limit: str | int | None = None) -> Page[Todo]:
        todos = self.store.read_transaction(lambda tx: TodoRepository(tx).list_all())
        return paginate(todos, page, limit)

    def get_todo(self, todo_id: int) -> Todo:
        todo = self.store.read_transaction(lambda tx: TodoRepository(tx).get(todo_id))
        if todo is None:
            logger.warning(f"Todo with id {todo_id} not found")
            raise TodoNotFoundError()
        return todo

    def create_todo(self, todo: Todo) -> Todo:
        return self.store.write_transaction(lambda tx: TodoRepository(tx).create(todo))

    def update_todo(self, todo_id: int, todo: Todo) -> Todo:
        return self.store.write_transaction(lambda tx: TodoRepository(tx).upsert(todo_id, todo))

    def delete_todo(self, todo_id: int) -> None:
        self.store.write_transaction(lambda tx: TodoRepository(tx).delete(todo_id))
