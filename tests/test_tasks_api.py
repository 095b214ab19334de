from datetime import datetime, timezone

from fastapi.testclient import TestClient

from conftest import canonical, days_from_today
from task_api.main import create_app
from task_api.repositories import InMemoryRepository


def create_task_payload(name="Test Task", completed=None, due_date=None):
    payload = {"name": name}
    if completed is not None:
        payload["completed"] = completed
    if due_date is not None:
        payload["dueDate"] = due_date
    return payload


def assert_task_shape(task: dict):
    assert set(task) == {"id", "name", "completed", "dueDate"}
    assert isinstance(task["id"], int)
    assert isinstance(task["name"], str)
    assert isinstance(task["completed"], bool)
    if task["dueDate"] is not None:
        assert task["dueDate"].endswith("Z")
        datetime.fromisoformat(task["dueDate"].replace("Z", "+00:00"))


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] in ("memory", "sqlite")


class TestCreateTask:
    def test_create_task_minimal(self, client):
        res = client.post("/task", json=create_task_payload(name="Buy milk"))
        assert res.status_code == 201
        task = res.json()
        assert_task_shape(task)
        assert task["name"] == "Buy milk"
        assert task["completed"] is False
        assert task["dueDate"] is None

    def test_create_task_with_due_date_tomorrow(self, client):
        tomorrow = days_from_today(1)
        res = client.post("/task", json=create_task_payload(name="t1", due_date=tomorrow))
        assert res.status_code == 201
        task = res.json()
        assert_task_shape(task)
        assert task["completed"] is False
        assert task["dueDate"] == canonical(tomorrow)

    def test_create_task_normalizes_offset_to_utc(self, client):
        res = client.post(
            "/task", json=create_task_payload(name="Offset", due_date="2099-12-25T10:30:00+02:00")
        )
        assert res.status_code == 201
        assert res.json()["dueDate"] == "2099-12-25T08:30:00.000Z"

    def test_create_task_due_today_is_accepted(self, client):
        now = datetime.now(timezone.utc).replace(hour=0, minute=0, second=1, microsecond=0)
        res = client.post("/task", json=create_task_payload(name="Today", due_date=now.isoformat()))
        assert res.status_code == 201

    def test_duplicated_name(self, client):
        first = client.post("/task", json=create_task_payload(name="t1", due_date=days_from_today(1)))
        assert first.status_code == 201

        second = client.post("/task", json=create_task_payload(name="t1"))
        assert second.status_code == 400
        assert second.json() == {"message": "Duplicated task name 't1'"}

    def test_duplicated_due_date(self, client):
        due = days_from_today(3)
        assert client.post("/task", json=create_task_payload(name="a", due_date=due)).status_code == 201

        res = client.post("/task", json=create_task_payload(name="b", due_date=canonical(due)))
        assert res.status_code == 400
        assert res.json() == {"message": "Cannot schedule two tasks for the same time"}

    def test_tasks_without_due_date_do_not_collide(self, client):
        assert client.post("/task", json=create_task_payload(name="a")).status_code == 201
        assert client.post("/task", json=create_task_payload(name="b")).status_code == 201


class TestValidationErrors:
    def test_name_required(self, client):
        for payload in ({}, {"name": ""}, {"name": "   "}, {"name": None}):
            res = client.post("/task", json=payload)
            assert res.status_code == 400
            assert res.json() == {"message": "'name' is a required field"}

    def test_completed_must_be_boolean(self, client):
        for value in ("yes", 1, None):
            res = client.post("/task", json={"name": "x", "completed": value})
            assert res.status_code == 400
            assert res.json() == {"message": "'completed' must be a boolean"}

    def test_invalid_due_date(self, client):
        res = client.post("/task", json=create_task_payload(name="x", due_date="not-a-date"))
        assert res.status_code == 400
        assert res.json() == {"message": "Invalid dueDate 'not-a-date'"}

    def test_due_date_in_the_past(self, client):
        res = client.post("/task", json=create_task_payload(name="x", due_date=days_from_today(-1)))
        assert res.status_code == 400
        assert res.json() == {"message": "Can't create a task with a dueDate in the past"}

    def test_due_date_beyond_utc_range(self, client):
        res = client.post("/task", json=create_task_payload(name="x", due_date="9999-12-31T23:00:00-05:00"))
        assert res.status_code == 400
        assert res.json() == {"message": "Invalid dueDate '9999-12-31T23:00:00-05:00'"}

    def test_body_must_be_an_object(self, client):
        res = client.post("/task", json=["name", "x"])
        assert res.status_code == 400
        assert res.json() == {"message": "Request validation failed"}

    def test_task_id_must_be_an_integer(self, client):
        res = client.delete("/task/abc")
        assert res.status_code == 400
        assert res.json() == {"message": "Request validation failed"}


class TestDeleteTask:
    def test_delete_task(self, client):
        tid = client.post("/task", json=create_task_payload(name="ToDelete")).json()["id"]

        res_del = client.delete(f"/task/{tid}")
        assert res_del.status_code == 204
        assert res_del.text == ""

        # Deleting again reports the missing id
        res_again = client.delete(f"/task/{tid}")
        assert res_again.status_code == 400
        assert res_again.json() == {"message": f"Task with ID {tid} doesn't exist"}

    def test_id_beyond_storage_range(self, client):
        res = client.delete("/task/99999999999999999999")
        assert res.status_code == 400
        assert res.json() == {"message": "Task with ID 99999999999999999999 doesn't exist"}

    def test_delete_nonexistent(self, client):
        res = client.delete("/task/999999")
        assert res.status_code == 400
        assert res.json() == {"message": "Task with ID 999999 doesn't exist"}

    def test_deleted_name_can_be_reused(self, client):
        tid = client.post("/task", json=create_task_payload(name="again")).json()["id"]
        client.delete(f"/task/{tid}")
        assert client.post("/task", json=create_task_payload(name="again")).status_code == 201


class TestUpdateTask:
    def test_put_replaces_task(self, client):
        tid = client.post("/task", json=create_task_payload(name="Initial")).json()["id"]

        res = client.put(
            f"/task/{tid}",
            json=create_task_payload(name="Replaced", completed=True, due_date="2100-01-01"),
        )
        assert res.status_code == 200
        updated = res.json()
        assert_task_shape(updated)
        assert updated == {
            "id": tid,
            "name": "Replaced",
            "completed": True,
            "dueDate": "2100-01-01T00:00:00.000Z",
        }

    def test_put_resets_omitted_fields(self, client):
        created = client.post(
            "/task", json=create_task_payload(name="Full", completed=True, due_date="2100-01-02")
        ).json()

        res = client.put(f"/task/{created['id']}", json={"name": "Full"})
        assert res.status_code == 200
        assert res.json()["completed"] is False
        assert res.json()["dueDate"] is None

    def test_put_keeping_own_name_and_due_date(self, client):
        created = client.post(
            "/task", json=create_task_payload(name="Mine", due_date="2100-01-03")
        ).json()

        res = client.put(
            f"/task/{created['id']}",
            json=create_task_payload(name="Mine", completed=True, due_date="2100-01-03"),
        )
        assert res.status_code == 200
        assert res.json()["completed"] is True

    def test_put_duplicated_name(self, client):
        client.post("/task", json=create_task_payload(name="a"))
        tid = client.post("/task", json=create_task_payload(name="b")).json()["id"]

        res = client.put(f"/task/{tid}", json=create_task_payload(name="a"))
        assert res.status_code == 400
        assert res.json() == {"message": "Task with name 'a' already existis"}

    def test_put_duplicated_due_date(self, client):
        client.post("/task", json=create_task_payload(name="a", due_date="2099-12-25"))
        tid = client.post("/task", json=create_task_payload(name="b")).json()["id"]

        res = client.put(f"/task/{tid}", json=create_task_payload(name="b", due_date="2099-12-25"))
        assert res.status_code == 400
        assert res.json() == {"message": "Due date 12/25/2099, 12:00:00 AM already exists."}

    def test_put_validates_like_create(self, client):
        tid = client.post("/task", json=create_task_payload(name="v")).json()["id"]
        res = client.put(f"/task/{tid}", json=create_task_payload(name="v", due_date=days_from_today(-2)))
        assert res.status_code == 400
        assert res.json() == {"message": "Can't create a task with a dueDate in the past"}

    def test_put_id_beyond_storage_range(self, client):
        res = client.put("/task/99999999999999999999", json=create_task_payload(name="Huge"))
        assert res.status_code == 400
        assert res.json() == {"message": "Task with ID 99999999999999999999 doesn't exist"}

    def test_put_nonexistent(self, client):
        res = client.put("/task/424242", json=create_task_payload(name="Nope"))
        assert res.status_code == 400
        assert res.json() == {"message": "Task with ID 424242 doesn't exist"}


class TestListTasks:
    def seed_tasks(self, client):
        seeds = [
            ("delta", True, days_from_today(4)),
            ("alpha", True, days_from_today(2)),
            ("charlie", False, None),
            ("bravo", False, days_from_today(1)),
            ("echo", True, days_from_today(3)),
        ]
        ids = {}
        for name, completed, due in seeds:
            res = client.post("/task", json=create_task_payload(name=name, completed=completed, due_date=due))
            assert res.status_code == 201
            ids[name] = res.json()["id"]
        return ids

    def names(self, res):
        assert res.status_code == 200
        return [t["name"] for t in res.json()]

    def test_list_empty(self, client):
        res = client.get("/task")
        assert res.status_code == 200
        assert res.json() == []

    def test_list_without_parameters_returns_all_in_store_order(self, client):
        self.seed_tasks(client)
        res = client.get("/task")
        assert self.names(res) == ["delta", "alpha", "charlie", "bravo", "echo"]
        for task in res.json():
            assert_task_shape(task)

    def test_order_and_filter(self, client):
        self.seed_tasks(client)
        res = client.get("/task", params={"order": "name;dueDate,DESC", "filter": "completed=true"})
        assert self.names(res) == ["alpha", "delta", "echo"]

    def test_order_mixed_directions(self, client):
        self.seed_tasks(client)
        res = client.get("/task", params={"order": "completed;name,desc"})
        assert self.names(res) == ["charlie", "bravo", "echo", "delta", "alpha"]

    def test_order_by_due_date_puts_missing_dates_first(self, client):
        self.seed_tasks(client)
        res = client.get("/task", params={"order": "dueDate"})
        assert self.names(res) == ["charlie", "bravo", "alpha", "echo", "delta"]

    def test_filter_by_name_substring(self, client):
        self.seed_tasks(client)
        res = client.get("/task", params={"filter": "name=HA"})
        assert self.names(res) == ["alpha", "charlie"]

    def test_filter_by_due_date_range(self, client):
        self.seed_tasks(client)
        res = client.get(
            "/task",
            params={"filter": f"dueDate={days_from_today(2)};{days_from_today(3)}", "order": "dueDate"},
        )
        assert self.names(res) == ["alpha", "echo"]

    def test_filter_completed_not_a_boolean(self, client):
        res = client.get("/task", params={"filter": "completed=notabool"})
        assert res.status_code == 400
        assert res.json() == {"message": "Completed column filter must be a boolean"}

    def test_invalid_order_column(self, client):
        res = client.get("/task", params={"order": "priority"})
        assert res.status_code == 400
        assert res.json() == {"message": "Invalid column 'priority'"}

    def test_due_date_range_beyond_utc_range(self, client):
        expr = "dueDate=0001-01-01T00:00:00+01:00;2030-01-01"
        res = client.get("/task", params={"filter": expr})
        assert res.status_code == 400
        assert res.json() == {"message": "Invalid range '0001-01-01T00:00:00+01:00;2030-01-01'"}

    def test_invalid_due_date_range(self, client):
        res = client.get("/task", params={"filter": "dueDate=2030-01-05;2030-01-01"})
        assert res.status_code == 400
        assert res.json() == {"message": "Start date can't be after end"}


class _BrokenRepository(InMemoryRepository):
    def list_tasks(self, spec=None):
        raise RuntimeError("disk on fire")


def test_unexpected_errors_are_hidden_behind_500():
    client = TestClient(create_app(repository=_BrokenRepository()), raise_server_exceptions=False)
    res = client.get("/task")
    assert res.status_code == 500
    assert res.json() == {"message": "Internal Server Error"}
