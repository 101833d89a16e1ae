"""Task list, create, partial update and delete.

Update and delete by id trust the path id unless the app is configured with
``enforce_task_ownership``, in which case they need a session and only touch
the caller's own tasks.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from ..auth import SessionClaims, optional_session, require_session
from ..config import Settings
from ..db import get_db
from ..errors import ApiError
from ..models import Task
from ..queries import ALL, MAX_LIMIT, MAX_PAGE, SORT_DUE_DATE, TaskFilters, query_tasks
from ..schemas import (
    BulkDeleteRequest,
    StatsOut,
    TaskCreate,
    TaskListResponse,
    TaskOut,
    TaskPatch,
)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

STATUS_CHOICES = ("ALL", "PENDING", "COMPLETED")
PRIORITY_CHOICES = ("ALL", "LOW", "MEDIUM", "HIGH")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def task_filters(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    search: str = "",
    status: str = ALL,
    priority: str = ALL,
    category: str = ALL,
    sort: str = SORT_DUE_DATE,
) -> TaskFilters:
    """Build TaskFilters from the query string; empty values fall back to defaults."""
    status = status or ALL
    priority = priority or ALL
    field_errors = {}
    if status not in STATUS_CHOICES:
        field_errors["status"] = [f"Expected one of {', '.join(STATUS_CHOICES)}"]
    if priority not in PRIORITY_CHOICES:
        field_errors["priority"] = [f"Expected one of {', '.join(PRIORITY_CHOICES)}"]
    if field_errors:
        raise ApiError(400, {"formErrors": [], "fieldErrors": field_errors})
    return TaskFilters(
        page=page,
        limit=limit,
        search=search,
        status=status,
        priority=priority,
        category=category or ALL,
        sort=sort or SORT_DUE_DATE,
    )


def _mutation_owner(
    settings: Settings = Depends(get_settings),
    claims: Optional[SessionClaims] = Depends(optional_session),
) -> Optional[str]:
    """Owner id to scope a by-id mutation to, or None when ownership is not enforced."""
    if not settings.enforce_task_ownership:
        return None
    if claims is None:
        raise ApiError(401, "Unauthorized")
    return claims.user_id


def _find_task(db: DBSession, task_id: str, owner_id: Optional[str]) -> Optional[Task]:
    q = db.query(Task).filter(Task.id == task_id)
    if owner_id is not None:
        q = q.filter(Task.user_id == owner_id)
    return q.first()


@router.get("", response_model=TaskListResponse)
def list_tasks(
    filters: TaskFilters = Depends(task_filters),
    claims: SessionClaims = Depends(require_session),
    db: DBSession = Depends(get_db),
):
    try:
        page = query_tasks(db, claims.user_id, filters)
    except SQLAlchemyError:
        logger.exception("GET /api/tasks failed")
        raise ApiError(500, "Failed to fetch tasks")
    return TaskListResponse(
        tasks=[TaskOut.model_validate(t) for t in page.items],
        total=page.total,
        stats=StatsOut.model_validate(page.stats),
        categories=page.categories,
    )


@router.post("", response_model=TaskOut, status_code=201)
def create_task(
    req: TaskCreate,
    claims: SessionClaims = Depends(require_session),
    db: DBSession = Depends(get_db),
):
    task = Task(
        user_id=claims.user_id,
        title=req.title,
        description=req.description,
        due_date=req.due_date,
        priority=req.priority.value,
        category=req.category,
        status=req.status.value,
    )
    try:
        db.add(task)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("POST /api/tasks failed")
        raise ApiError(500, "Failed to create task")
    logger.debug(f"Task {task.id} created for user {claims.user_id}")
    return task


@router.delete("/bulk")
def bulk_delete_tasks(
    req: BulkDeleteRequest,
    owner_id: Optional[str] = Depends(_mutation_owner),
    db: DBSession = Depends(get_db),
):
    """Delete every listed id; `count` is the number of ids requested."""
    try:
        q = db.query(Task).filter(Task.id.in_(req.ids))
        if owner_id is not None:
            q = q.filter(Task.user_id == owner_id)
        deleted = q.delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("DELETE /api/tasks/bulk failed")
        raise ApiError(500, "Failed to delete tasks")
    logger.debug(f"Bulk delete: {len(req.ids)} requested, {deleted} removed")
    return {"success": True, "count": len(req.ids)}


@router.patch("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: str,
    req: TaskPatch,
    owner_id: Optional[str] = Depends(_mutation_owner),
    db: DBSession = Depends(get_db),
):
    try:
        task = _find_task(db, task_id, owner_id)
        if task is None:
            raise ApiError(404, "Task not found")
        for name, value in req.changes().items():
            setattr(task, name, value)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"PATCH /api/tasks/{task_id} failed")
        raise ApiError(500, "Failed to update task")
    return task


@router.delete("/{task_id}")
def delete_task(
    task_id: str,
    owner_id: Optional[str] = Depends(_mutation_owner),
    db: DBSession = Depends(get_db),
):
    try:
        task = _find_task(db, task_id, owner_id)
        if task is None:
            raise ApiError(404, "Task not found")
        db.delete(task)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"DELETE /api/tasks/{task_id} failed")
        raise ApiError(500, "Failed to delete task")
    return {"success": True}
