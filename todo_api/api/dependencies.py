"""
FastAPI dependencies for dependency injection.

This module provides reusable dependencies for:
- The store handle opened by the application lifespan
- The todo service bound to that store
- Request decoding (path id, JSON body) with the API's 400 semantics

Design decisions:
- The store lives on app.state, owned by the lifespan; there is no
  module-level store
- Decoding failures raise InvalidRequestError so every client error goes
  through the same plain-text handler
"""

from typing import Annotated

from fastapi import Depends, Request

from todo_api.core.exceptions import StoreError
from todo_api.models.database import Store
from todo_api.models.domain.todo import Todo
from todo_api.services.todo_service import TodoService
from todo_api.utils.helpers import parse_todo_body, parse_todo_id


def get_store(request: Request) -> Store:
    """
    Dependency that provides the application's open store.

    Raises:
        StoreError: If the application started without a store or it was
            already closed
    """
    store: Store | None = getattr(request.app.state, "store", None)
    if store is None or store.closed:
        raise StoreError("database not open")
    return store


def get_todo_service(store: Annotated[Store, Depends(get_store)]) -> TodoService:
    return TodoService(store)


def get_todo_id(todo_id: str) -> int:
    """Parse the ``{todo_id}`` path segment; anything but an unsigned 64-bit decimal is 'Invalid ID'."""
    return parse_todo_id(todo_id)


async def get_todo_body(request: Request) -> Todo:
    """Decode the raw request body as a Todo, mapping decode errors to 400."""
    body = await request.body()
    return parse_todo_body(body)
