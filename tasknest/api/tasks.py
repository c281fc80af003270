from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from sqlmodel import Session

from tasknest.api.errors import ApiException, error_response_docs
from tasknest.api.views import render
from tasknest.core.auth import CurrentUser
from tasknest.core.logging import bind_log_context, get_logger
from tasknest.db.enums import TaskStatus
from tasknest.db.models import Folder, Task, User, persisted_id
from tasknest.db.repositories import (
    FolderRepository,
    RepositoryConflictError,
    TaskRepository,
)
from tasknest.db.session import get_session

TITLE_MAX_LENGTH = 100

router = APIRouter(prefix="/folders/{folder}/tasks", tags=["tasks"])
logger = get_logger("tasknest.api.tasks")

DbSession = Annotated[Session, Depends(get_session)]

_NOT_FOUND_DOCS = error_response_docs(
    status.HTTP_401_UNAUTHORIZED,
    status.HTTP_404_NOT_FOUND,
)
_WRITE_DOCS = error_response_docs(
    status.HTTP_401_UNAUTHORIZED,
    status.HTTP_404_NOT_FOUND,
    status.HTTP_409_CONFLICT,
    status.HTTP_422_UNPROCESSABLE_CONTENT,
)


def _strip_title(value: object) -> object:
    return value.strip() if isinstance(value, str) else value


TaskTitle = Annotated[
    str,
    BeforeValidator(_strip_title),
    Field(min_length=1, max_length=TITLE_MAX_LENGTH),
]


class TaskCreateForm(BaseModel):
    title: TaskTitle
    due_date: date
    model_config = ConfigDict(
        json_schema_extra={"example": {"title": "Draft report", "due_date": "2026-11-01"}}
    )

    @field_validator("due_date")
    @classmethod
    def validate_due_date_not_past(cls, value: date) -> date:
        if value < date.today():
            raise ValueError("due_date must be today or a later date")
        return value


class TaskEditForm(BaseModel):
    title: TaskTitle
    status: TaskStatus
    due_date: date
    model_config = ConfigDict(
        json_schema_extra={
            "example": {"title": "Final report", "status": "done", "due_date": "2026-11-15"}
        }
    )


@contextmanager
def _operation(name: str) -> Iterator[None]:
    """Expected failures pass through as ApiException; anything else is logged and re-raised."""
    try:
        yield
    except ApiException:
        raise
    except RepositoryConflictError as exc:
        logger.warning("task.operation_conflict", operation=name, error=str(exc))
        raise ApiException(
            status.HTTP_409_CONFLICT,
            "RESOURCE_CONFLICT",
            "Operation violates a database constraint.",
        ) from exc
    except Exception as exc:
        logger.exception("task.operation_failed", operation=name, error=str(exc))
        raise


def _task_not_found(task_id: int) -> ApiException:
    return ApiException(
        status.HTTP_404_NOT_FOUND,
        "TASK_NOT_FOUND",
        f"Task {task_id} does not exist.",
    )


def _require_owned_folder(session: Session, *, folder_id: int, user: User) -> Folder:
    folder = FolderRepository(session).get_owned(folder_id, owner_id=persisted_id(user))
    if folder is None:
        raise ApiException(
            status.HTTP_404_NOT_FOUND,
            "FOLDER_NOT_FOUND",
            f"Folder {folder_id} does not exist.",
        )
    return folder


def ensure_task_in_folder(folder_id: int, task: Task) -> None:
    """Reject a task addressed through a folder it does not belong to."""
    if task.folder_id != folder_id:
        logger.warning(
            "task.relation_mismatch",
            folder_id=folder_id,
            task_id=task.id,
            actual_folder_id=task.folder_id,
        )
        raise ApiException(
            status.HTTP_404_NOT_FOUND,
            "TASK_NOT_IN_FOLDER",
            f"Task {task.id} does not belong to folder {folder_id}.",
        )


def _resolve_owned_task(
    session: Session,
    *,
    folder_id: int,
    task_id: int,
    user: User,
) -> tuple[Folder, Task]:
    # Ownership is settled before any task row is touched, and tasks in
    # folders of other users are indistinguishable from missing ones.
    owned_folder = _require_owned_folder(session, folder_id=folder_id, user=user)
    owned_folder_id = persisted_id(owned_folder)

    tasks = TaskRepository(session)
    task = tasks.get_owned(task_id, owner_id=persisted_id(user))
    if task is None:
        raise _task_not_found(task_id)
    ensure_task_in_folder(owned_folder_id, task)

    scoped_task = tasks.get_in_folder(task_id, folder_id=owned_folder_id)
    if scoped_task is None:
        raise _task_not_found(task_id)
    return owned_folder, scoped_task


def _redirect_to_index(request: Request, folder_id: int) -> RedirectResponse:
    url = request.url_for("tasks.index", folder=str(folder_id))
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


@router.get(
    "",
    name="tasks.index",
    response_class=HTMLResponse,
    responses=_NOT_FOUND_DOCS,
)
def list_tasks(
    request: Request,
    folder: int,
    user: CurrentUser,
    session: DbSession,
) -> HTMLResponse:
    bind_log_context(user_id=user.id, folder_id=folder)
    with _operation("list_tasks"):
        current_folder = _require_owned_folder(session, folder_id=folder, user=user)
        current_folder_id = persisted_id(current_folder)
        folders = FolderRepository(session).list_for_owner(owner_id=persisted_id(user))
        tasks = TaskRepository(session).list_for_folder(folder_id=current_folder_id)
        logger.info("task.listed", folder_id=current_folder_id, count=len(tasks))
        return render(
            request,
            "tasks/index",
            {
                "folders": folders,
                "folder_id": current_folder_id,
                "current_folder": current_folder,
                "tasks": tasks,
            },
        )


@router.get(
    "/create",
    name="tasks.create_form",
    response_class=HTMLResponse,
    responses=_NOT_FOUND_DOCS,
)
def show_create_form(
    request: Request,
    folder: int,
    user: CurrentUser,
    session: DbSession,
) -> HTMLResponse:
    bind_log_context(user_id=user.id, folder_id=folder)
    with _operation("show_create_form"):
        owned_folder = _require_owned_folder(session, folder_id=folder, user=user)
        return render(request, "tasks/create", {"folder_id": owned_folder.id})


@router.post(
    "/create",
    name="tasks.create",
    status_code=status.HTTP_303_SEE_OTHER,
    response_class=RedirectResponse,
    responses=_WRITE_DOCS,
)
def create_task(
    request: Request,
    folder: int,
    payload: Annotated[TaskCreateForm, Form()],
    user: CurrentUser,
    session: DbSession,
) -> RedirectResponse:
    bind_log_context(user_id=user.id, folder_id=folder)
    with _operation("create_task"):
        owned_folder = _require_owned_folder(session, folder_id=folder, user=user)
        task = TaskRepository(session).create(
            Task(
                folder_id=persisted_id(owned_folder),
                title=payload.title,
                due_date=payload.due_date,
            )
        )

    logger.info("task.created", folder_id=task.folder_id, task_id=task.id)
    return _redirect_to_index(request, task.folder_id)


@router.get(
    "/{task}/edit",
    name="tasks.edit_form",
    response_class=HTMLResponse,
    responses=_NOT_FOUND_DOCS,
)
def show_edit_form(
    request: Request,
    folder: int,
    task: int,
    user: CurrentUser,
    session: DbSession,
) -> HTMLResponse:
    bind_log_context(user_id=user.id, folder_id=folder, task_id=task)
    with _operation("show_edit_form"):
        owned_folder, owned_task = _resolve_owned_task(
            session,
            folder_id=folder,
            task_id=task,
            user=user,
        )
        return render(
            request,
            "tasks/edit",
            {
                "task": owned_task,
                "folder_id": owned_folder.id,
                "statuses": list(TaskStatus),
            },
        )


@router.post(
    "/{task}/edit",
    name="tasks.edit",
    status_code=status.HTTP_303_SEE_OTHER,
    response_class=RedirectResponse,
    responses=_WRITE_DOCS,
)
def edit_task(
    request: Request,
    folder: int,
    task: int,
    payload: Annotated[TaskEditForm, Form()],
    user: CurrentUser,
    session: DbSession,
) -> RedirectResponse:
    bind_log_context(user_id=user.id, folder_id=folder, task_id=task)
    with _operation("edit_task"):
        _, owned_task = _resolve_owned_task(
            session,
            folder_id=folder,
            task_id=task,
            user=user,
        )
        previous_status = owned_task.status_value
        updated = TaskRepository(session).update(
            owned_task,
            title=payload.title,
            status=payload.status,
            due_date=payload.due_date,
        )

    logger.info(
        "task.updated",
        task_id=updated.id,
        status=str(updated.status),
        status_changed=previous_status != payload.status,
    )
    return _redirect_to_index(request, updated.folder_id)


@router.get(
    "/{task}/delete",
    name="tasks.delete_form",
    response_class=HTMLResponse,
    responses=_NOT_FOUND_DOCS,
)
def show_delete_form(
    request: Request,
    folder: int,
    task: int,
    user: CurrentUser,
    session: DbSession,
) -> HTMLResponse:
    bind_log_context(user_id=user.id, folder_id=folder, task_id=task)
    with _operation("show_delete_form"):
        owned_folder, owned_task = _resolve_owned_task(
            session,
            folder_id=folder,
            task_id=task,
            user=user,
        )
        return render(
            request,
            "tasks/delete",
            {"task": owned_task, "folder_id": owned_folder.id},
        )


@router.post(
    "/{task}/delete",
    name="tasks.delete",
    status_code=status.HTTP_303_SEE_OTHER,
    response_class=RedirectResponse,
    responses=_NOT_FOUND_DOCS,
)
def delete_task(
    request: Request,
    folder: int,
    task: int,
    user: CurrentUser,
    session: DbSession,
) -> RedirectResponse:
    bind_log_context(user_id=user.id, folder_id=folder, task_id=task)
    with _operation("delete_task"):
        _, owned_task = _resolve_owned_task(
            session,
            folder_id=folder,
            task_id=task,
            user=user,
        )
        folder_id = owned_task.folder_id
        TaskRepository(session).delete(owned_task)

    logger.info("task.deleted", folder_id=folder_id, task_id=task)
    return _redirect_to_index(request, folder_id)
