"""Task query engine.

Turns list filters into one owner-scoped query and assembles the dashboard
payload: a page of tasks, the filtered total, whole-owner counters and the
category facet.

The SQLite store decides two comparison details:
- ``search`` is a case-sensitive substring test (``instr``), unlike ``LIKE``.
- ``title`` ordering uses the BINARY collation, so upper case sorts before
  lower case ("Banana" < "Cherry" < "apple").

The separate counts are not read from one snapshot; concurrent writes can
make them disagree for a moment.
"""

from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session as DBSession

from .models import Task, TaskStatus

ALL = "ALL"

SORT_DUE_DATE = "dueDate"
SORT_PRIORITY = "priority"
SORT_TITLE = "title"
SORT_CREATED_AT = "createdAt"

# Keeps OFFSET and LIMIT inside SQLite's 64-bit integer range.
MAX_PAGE = 1_000_000_000
MAX_LIMIT = 1000


@dataclass
class TaskFilters:
    page: int = 1
    limit: int = 10
    search: str = ""
    status: str = ALL
    priority: str = ALL
    category: str = ALL
    sort: str = SORT_DUE_DATE

    def __post_init__(self):
        if not 1 <= self.page <= MAX_PAGE:
            raise ValueError(f"page must be between 1 and {MAX_PAGE}")
        if not 1 <= self.limit <= MAX_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_LIMIT}")

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class TaskStats:
    total: int = 0
    completed: int = 0
    pending: int = 0


@dataclass
class TaskPage:
    items: list[Task] = field(default_factory=list)
    total: int = 0
    stats: TaskStats = field(default_factory=TaskStats)
    categories: list[str] = field(default_factory=list)


def _ordering(sort: str):
    if sort == SORT_DUE_DATE:
        return Task.due_date.asc()
    if sort == SORT_PRIORITY:
        # Plain label order: MEDIUM, LOW, HIGH.
        return Task.priority.desc()
    if sort == SORT_TITLE:
        return Task.title.asc()
    return Task.created_at.desc()


def build_filter(owner_id: str, filters: TaskFilters) -> list:
    """Return the WHERE clauses for `filters`, always scoped to `owner_id`."""
    clauses = [Task.user_id == owner_id]
    if filters.search:
        clauses.append(func.instr(Task.title, filters.search) > 0)
    if filters.status != ALL:
        clauses.append(Task.status == filters.status)
    if filters.priority != ALL:
        clauses.append(Task.priority == filters.priority)
    if filters.category != ALL:
        clauses.append(Task.category == filters.category)
    return clauses


def owner_stats(db: DBSession, owner_id: str) -> TaskStats:
    """Counters over all of the owner's tasks, ignoring any list filter."""
    scoped = db.query(Task).filter(Task.user_id == owner_id)
    return TaskStats(
        total=scoped.count(),
        completed=scoped.filter(Task.status == TaskStatus.COMPLETED.value).count(),
        pending=scoped.filter(Task.status == TaskStatus.PENDING.value).count(),
    )


def owner_categories(db: DBSession, owner_id: str) -> list[str]:
    rows = (
        db.query(Task.category)
        .filter(Task.user_id == owner_id)
        .distinct()
        .order_by(Task.category.asc())
        .all()
    )
    return [category for (category,) in rows]


def query_tasks(db: DBSession, owner_id: str, filters: Optional[TaskFilters] = None) -> TaskPage:
    """Read one page of the owner's tasks plus totals and the category facet.

    Read-only; identical inputs against unchanged data give identical output.
    """
    filters = filters or TaskFilters()
    clauses = build_filter(owner_id, filters)

    items = (
        db.query(Task)
        .filter(*clauses)
        .order_by(_ordering(filters.sort))
        .offset(filters.skip)
        .limit(filters.limit)
        .all()
    )
    total = db.query(Task).filter(*clauses).count()

    return TaskPage(
        items=items,
        total=total,
        stats=owner_stats(db, owner_id),
        categories=owner_categories(db, owner_id),
    )
