from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Response, status

from todo_api.api.dependencies import get_todo_body, get_todo_id, get_todo_service
from todo_api.models.domain.response import Page
from todo_api.models.domain.todo import Todo
from todo_api.services.todo_service import TodoService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/todos", tags=["todo"])

# Handlers are plain ``def`` so FastAPI runs each request on its threadpool;
# the store's transactions are blocking SQLite calls.


@router.get("", response_model=Page[Todo])
def list_todos(
    service: Annotated[TodoService, Depends(get_todo_service)],
    page: str | None = None,
    limit: str | None = None,
):
    return service.list_todos(page, limit)


@router.post("", response_model=Todo, status_code=status.HTTP_201_CREATED)
def create_todo(
    todo: Annotated[Todo, Depends(get_todo_body)],
    service: Annotated[TodoService, Depends(get_todo_service)],
):
    created = service.create_todo(todo)
    logger.info("todo_created", todo_id=created.id)
    return created


@router.get("/{todo_id}", response_model=Todo)
def get_todo(
    todo_id: Annotated[int, Depends(get_todo_id)],
    service: Annotated[TodoService, Depends(get_todo_service)],
):
    return service.get_todo(todo_id)


@router.put("/{todo_id}", response_model=Todo)
def update_todo(
    todo_id: Annotated[int, Depends(get_todo_id)],
    todo: Annotated[Todo, Depends(get_todo_body)],
    service: Annotated[TodoService, Depends(get_todo_service)],
):
    return service.update_todo(todo_id, todo)


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_todo(
    todo_id: Annotated[int, Depends(get_todo_id)],
    service: Annotated[TodoService, Depends(get_todo_service)],
):
    service.delete_todo(todo_id)
    logger.info("todo_deleted", todo_id=todo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
