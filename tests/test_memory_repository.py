import pytest

from task_api.errors import DuplicateError
from task_api.models import NewTask
from task_api.repositories import InMemoryRepository

DUE = "2099-01-01T00:00:00.000Z"


@pytest.fixture
def memory_repo():
    return InMemoryRepository()


def test_create_duplicate_name(memory_repo):
    memory_repo.create_task(NewTask(name="a"))
    with pytest.raises(DuplicateError, match="Duplicated task name 'a'"):
        memory_repo.create_task(NewTask(name="a", due_date=DUE))
    assert len(memory_repo.list_tasks()) == 1


def test_create_duplicate_due_date(memory_repo):
    memory_repo.create_task(NewTask(name="a", due_date=DUE))
    with pytest.raises(DuplicateError, match="Cannot schedule two tasks for the same time"):
        memory_repo.create_task(NewTask(name="b", due_date=DUE))


def test_update_duplicate_name(memory_repo):
    memory_repo.create_task(NewTask(name="a"))
    b = memory_repo.create_task(NewTask(name="b"))
    with pytest.raises(DuplicateError, match="Duplicated task name 'a'"):
        memory_repo.update_task(b["id"], NewTask(name="a"))
    assert memory_repo.get_task_by_name("b") == b


def test_update_duplicate_due_date(memory_repo):
    memory_repo.create_task(NewTask(name="a", due_date=DUE))
    b = memory_repo.create_task(NewTask(name="b"))
    with pytest.raises(DuplicateError, match="Cannot schedule two tasks for the same time"):
        memory_repo.update_task(b["id"], NewTask(name="b", due_date=DUE))


def test_update_may_keep_its_own_name_and_due_date(memory_repo):
    a = memory_repo.create_task(NewTask(name="a", due_date=DUE))
    updated = memory_repo.update_task(a["id"], NewTask(name="a", completed=True, due_date=DUE))
    assert updated == {"id": a["id"], "name": "a", "completed": True, "due_date": DUE}


def test_name_clash_reported_before_due_date_clash(memory_repo):
    # The due date clash is on an earlier row than the name clash
    memory_repo.create_task(NewTask(name="first", due_date=DUE))
    memory_repo.create_task(NewTask(name="second"))
    with pytest.raises(DuplicateError, match="Duplicated task name 'second'"):
        memory_repo.create_task(NewTask(name="second", due_date=DUE))
