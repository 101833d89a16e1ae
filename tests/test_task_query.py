from __future__ import annotations

import datetime

import pytest

from taskboard.queries import TaskFilters, query_tasks


def _titles(page) -> list[str]:
    return [t.title for t in page.items]


def test_status_filter_narrows_items_but_not_stats(db, make_user, make_task):
    owner = make_user()
    make_task(owner, "A", priority="HIGH", category="Work", status="PENDING")
    make_task(owner, "B", priority="LOW", category="Home", status="COMPLETED")

    page = query_tasks(db, owner.id, TaskFilters(status="PENDING"))

    assert _titles(page) == ["A"]
    assert page.total == 1
    assert page.stats.total == 2
    assert page.stats.completed == 1
    assert page.stats.pending == 1


def test_pagination_keeps_total_on_every_page(db, make_user, make_task):
    owner = make_user()
    for i in range(15):
        make_task(owner, f"Task {i:02d}")

    pages = [query_tasks(db, owner.id, TaskFilters(page=n, limit=10)) for n in (1, 2, 3)]

    assert [len(p.items) for p in pages] == [10, 5, 0]
    assert [p.total for p in pages] == [15, 15, 15]


def test_pages_do_not_overlap_for_a_strict_order(db, make_user, make_task):
    owner = make_user()
    for i in range(15):
        make_task(owner, f"Task {i:02d}")

    first = query_tasks(db, owner.id, TaskFilters(page=1, limit=10, sort="title"))
    second = query_tasks(db, owner.id, TaskFilters(page=2, limit=10, sort="title"))

    assert _titles(first) + _titles(second) == [f"Task {i:02d}" for i in range(15)]


def test_title_sort_is_case_sensitive_binary_order(db, make_user, make_task):
    owner = make_user()
    for title in ("Banana", "apple", "Cherry"):
        make_task(owner, title)

    page = query_tasks(db, owner.id, TaskFilters(sort="title"))

    assert _titles(page) == ["Banana", "Cherry", "apple"]


def test_priority_sort_is_descending_by_label_text(db, make_user, make_task):
    owner = make_user()
    make_task(owner, "high", priority="HIGH")
    make_task(owner, "low", priority="LOW")
    make_task(owner, "medium", priority="MEDIUM")

    page = query_tasks(db, owner.id, TaskFilters(sort="priority"))

    assert [t.priority for t in page.items] == ["MEDIUM", "LOW", "HIGH"]


def test_due_date_sort_is_ascending_with_undated_first(db, make_user, make_task):
    owner = make_user()
    make_task(owner, "later", due_date=datetime.datetime(2030, 5, 1))
    make_task(owner, "undated")
    make_task(owner, "sooner", due_date=datetime.datetime(2030, 1, 1))

    page = query_tasks(db, owner.id, TaskFilters())

    assert _titles(page) == ["undated", "sooner", "later"]


@pytest.mark.parametrize("sort", ["createdAt", "something-else"])
def test_other_sorts_are_newest_first(db, make_user, make_task, sort):
    owner = make_user()
    base = datetime.datetime(2026, 1, 1, 12, 0)
    make_task(owner, "oldest", created_at=base)
    make_task(owner, "newest", created_at=base + datetime.timedelta(hours=2))
    make_task(owner, "middle", created_at=base + datetime.timedelta(hours=1))

    page = query_tasks(db, owner.id, TaskFilters(sort=sort))

    assert _titles(page) == ["newest", "middle", "oldest"]


def test_search_is_case_sensitive_substring(db, make_user, make_task):
    owner = make_user()
    make_task(owner, "Buy milk")
    make_task(owner, "buy bread")
    make_task(owner, "Call mom")

    assert _titles(query_tasks(db, owner.id, TaskFilters(search="Buy"))) == ["Buy milk"]
    assert _titles(query_tasks(db, owner.id, TaskFilters(search="uy", sort="title"))) == [
        "Buy milk",
        "buy bread",
    ]
    assert query_tasks(db, owner.id, TaskFilters(search="BUY")).total == 0


def test_search_treats_like_wildcards_literally(db, make_user, make_task):
    owner = make_user()
    make_task(owner, "100% done")
    make_task(owner, "1000 things")

    assert _titles(query_tasks(db, owner.id, TaskFilters(search="0%"))) == ["100% done"]


def test_priority_and_category_filters_combine(db, make_user, make_task):
    owner = make_user()
    make_task(owner, "a", priority="HIGH", category="Work")
    make_task(owner, "b", priority="HIGH", category="Home")
    make_task(owner, "c", priority="LOW", category="Work")

    page = query_tasks(db, owner.id, TaskFilters(priority="HIGH", category="Work"))

    assert _titles(page) == ["a"]
    assert page.total == 1


def test_category_facet_ignores_active_filters(db, make_user, make_task):
    owner = make_user()
    make_task(owner, "a", category="Work")
    make_task(owner, "b", category="Home")
    make_task(owner, "c", category="Work")

    page = query_tasks(db, owner.id, TaskFilters(category="Home"))

    assert _titles(page) == ["b"]
    assert page.categories == ["Home", "Work"]


def test_results_are_scoped_to_owner(db, make_user, make_task):
    alice, bob = make_user(), make_user()
    make_task(alice, "alice's", category="Work", status="COMPLETED")
    make_task(bob, "bob's", category="Garden")

    page = query_tasks(db, alice.id, TaskFilters())

    assert _titles(page) == ["alice's"]
    assert page.total == 1
    assert page.categories == ["Work"]
    assert (page.stats.total, page.stats.completed, page.stats.pending) == (1, 1, 0)


def test_empty_owner(db, make_user):
    page = query_tasks(db, make_user().id)

    assert page.items == []
    assert page.total == 0
    assert page.categories == []
    assert (page.stats.total, page.stats.completed, page.stats.pending) == (0, 0, 0)


def test_repeated_queries_are_identical(db, make_user, make_task):
    owner = make_user()
    for i in range(5):
        make_task(owner, f"t{i}", category=f"c{i % 2}")
    filters = TaskFilters(sort="createdAt", limit=3)

    first = query_tasks(db, owner.id, filters)
    second = query_tasks(db, owner.id, filters)

    assert [t.id for t in first.items] == [t.id for t in second.items]
    assert (first.total, first.categories) == (second.total, second.categories)


@pytest.mark.parametrize(
    "kwargs", [{"page": 0}, {"limit": 0}, {"page": -1}, {"page": 10**19}, {"limit": 1001}]
)
def test_filters_reject_out_of_range_paging(kwargs):
    with pytest.raises(ValueError):
        TaskFilters(**kwargs)
