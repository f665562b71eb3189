import pytest
from fastapi.testclient import TestClient

from tasktracker import config
from tasktracker.errors import StoreError
from tasktracker.main import create_app
from tasktracker.services import task_service


@pytest.fixture
def headers(register):
    return register()[1]


class TestServerErrors:
    def test_store_error_hides_details(self, client, headers, monkeypatch):
        def broken(*args, **kwargs):
            raise StoreError()

        monkeypatch.setattr(task_service, "get_tasks", broken)
        r = client.get("/tasks", headers=headers)
        assert r.status_code == 500
        assert r.json() == {"success": False, "message": "Internal Server Error"}

    def test_stack_attached_in_development(self, client, headers, monkeypatch):
        def broken(*args, **kwargs):
            raise StoreError()

        monkeypatch.setattr(task_service, "get_tasks", broken)
        monkeypatch.setattr(config, "ENVIRONMENT", "development")
        r = client.get("/tasks", headers=headers)
        assert r.status_code == 500
        body = r.json()
        assert body["success"] is False
        assert "StoreError" in body["stack"]

    def test_unexpected_exception(self, database, headers, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(task_service, "get_tasks", broken)
        with TestClient(create_app(database), raise_server_exceptions=False) as c:
            r = c.get("/tasks", headers=headers)

        assert r.status_code == 500
        assert r.json() == {"success": False, "message": "Internal Server Error"}
        assert "disk on fire" not in r.text
        assert r.headers["X-Content-Type-Options"] == "nosniff"
        assert r.headers["X-Frame-Options"] == "DENY"

    def test_unexpected_exception_stack_in_development(self, database, headers, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(task_service, "get_tasks", broken)
        monkeypatch.setattr(config, "ENVIRONMENT", "development")
        with TestClient(create_app(database), raise_server_exceptions=False) as c:
            r = c.get("/tasks", headers=headers)

        assert r.status_code == 500
        assert "disk on fire" in r.json()["stack"]


class TestRateLimit:
    def test_requests_over_the_budget_get_429(self, database, monkeypatch):
        monkeypatch.setattr(config, "ENVIRONMENT", "production")
        monkeypatch.setattr(config, "RATE_LIMIT_MAX_REQUESTS", 2)

        with TestClient(create_app(database)) as c:
            assert c.get("/healthz").status_code == 200
            assert c.get("/healthz").status_code == 200
            r = c.get("/healthz")

        assert r.status_code == 429
        assert r.json() == {
            "success": False,
            "message": "Too many requests from this IP, please try again later.",
        }
        assert r.headers["X-Content-Type-Options"] == "nosniff"

    def test_not_enforced_under_test(self, database, monkeypatch):
        monkeypatch.setattr(config, "RATE_LIMIT_MAX_REQUESTS", 1)

        with TestClient(create_app(database)) as c:
            statuses = [c.get("/healthz").status_code for _ in range(3)]
        assert statuses == [200, 200, 200]


class TestBodyLimit:
    def test_chunked_body_over_the_cap(self, client, headers, monkeypatch):
        monkeypatch.setattr(config, "MAX_BODY_BYTES", 100)

        def chunks():
            yield b'{"title": "'
            for _ in range(10):
                yield b"x" * 50
            yield b'"}'

        r = client.post(
            "/tasks",
            content=chunks(),
            headers={**headers, "Content-Type": "application/json"},
        )
        assert r.status_code == 413
        assert r.json() == {"success": False, "message": "Request body too large"}

    def test_chunked_body_under_the_cap(self, client, headers):
        def chunks():
            yield b'{"title": '
            yield b'"streamed"}'

        r = client.post(
            "/tasks",
            content=chunks(),
            headers={**headers, "Content-Type": "application/json"},
        )
        assert r.status_code == 201
        assert r.json()["data"]["task"]["title"] == "streamed"
