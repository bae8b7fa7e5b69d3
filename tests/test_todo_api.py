"""
Tests for the todo HTTP endpoints.

Endpoints:
    GET /todos, POST /todos, GET/PUT/DELETE /todos/{id}, GET /health
"""

import pytest
from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from todo_api.config import Settings
from todo_api.main import create_app
from todo_api.models.domain.todo import encode_id


class TestHealth:
    """Health check endpoint."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_health_without_store(self, test_settings):
        """Health does not touch the store."""
        response = TestClient(create_app(test_settings)).get("/health")
        assert response.status_code == 200

    def test_process_time_header(self, client):
        response = client.get("/health")
        assert "X-Process-Time" in response.headers


class TestAppWiring:
    """Docs exposure and the catch-all error path."""

    def test_docs_served_outside_production(self, test_settings):
        response = TestClient(create_app(test_settings)).get("/docs")
        assert response.status_code == 200

    def test_docs_hidden_in_production(self, db_path):
        prod_settings = Settings(_env_file=None, db_path=db_path, app_env="production")
        client = TestClient(create_app(prod_settings))

        assert client.get("/docs").status_code == 404
        assert client.get("/redoc").status_code == 404

    def test_unexpected_error_is_timed_and_logged(self, test_settings, info_logs):
        """An unhandled exception becomes a plain-text 500 that still passes the request log."""
        app = create_app(test_settings)

        @app.get("/boom")
        def boom():
            raise RuntimeError("boom")

        with capture_logs() as logs:
            response = TestClient(app, raise_server_exceptions=False).get("/boom")

        assert response.status_code == 500
        assert response.text == "boom"
        assert "X-Process-Time" in response.headers
        completed = [entry for entry in logs if entry["event"] == "request_completed"]
        assert len(completed) == 1
        assert completed[0]["status_code"] == 500
        assert any(entry["event"] == "unexpected_error" for entry in logs)


class TestCreateTodo:
    """POST /todos"""

    def test_create_todo(self, client):
        response = client.post("/todos", json={"title": "Buy milk", "completed": False})

        assert response.status_code == 201
        assert response.json() == {"id": 1, "title": "Buy milk", "completed": False}

    def test_create_empty_title(self, client):
        response = client.post("/todos", json={"title": "", "completed": False})

        assert response.status_code == 201
        assert response.json()["title"] == ""

    def test_create_defaults_absent_fields(self, client):
        response = client.post("/todos", json={})

        assert response.status_code == 201
        assert response.json() == {"id": 1, "title": "", "completed": False}

    def test_create_ignores_client_id(self, client):
        response = client.post("/todos", json={"id": 42, "title": "x", "completed": True})

        assert response.status_code == 201
        assert response.json() == {"id": 1, "title": "x", "completed": True}

    def test_create_ignores_unknown_fields(self, client):
        response = client.post("/todos", json={"title": "x", "priority": "high"})

        assert response.status_code == 201
        assert response.json() == {"id": 1, "title": "x", "completed": False}

    @pytest.mark.parametrize("body", [b"not-json", b"", b"{\"title\": ", b"[1, 2]"])
    def test_create_malformed_body(self, client, body):
        response = client.post("/todos", content=body, headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.text
        assert client.get("/todos").json()["totalItems"] == 0

    def test_create_null_body(self, client):
        """A JSON null body is well-formed and yields an all-default todo."""
        response = client.post("/todos", content=b"null", headers={"Content-Type": "application/json"})

        assert response.status_code == 201
        assert response.json() == {"id": 1, "title": "", "completed": False}

    @pytest.mark.parametrize("body,expected", [
        ({"title": None, "completed": True}, {"id": 1, "title": "", "completed": True}),
        ({"title": "x", "completed": None}, {"id": 1, "title": "x", "completed": False}),
        ({"id": None, "title": "x"}, {"id": 1, "title": "x", "completed": False}),
    ])
    def test_create_null_fields_take_defaults(self, client, body, expected):
        response = client.post("/todos", json=body)

        assert response.status_code == 201
        assert response.json() == expected

    def test_create_wrong_field_type(self, client):
        response = client.post("/todos", json={"title": "x", "completed": "yes"})

        assert response.status_code == 400
        assert "completed" in response.text

    def test_ids_increase_across_deletes(self, client, make_todos):
        first, second = make_todos("a", "b")
        client.delete(f"/todos/{second['id']}")

        third = client.post("/todos", json={"title": "c"}).json()
        assert third["id"] == 3
        assert third["id"] > max(first["id"], second["id"])


class TestListTodos:
    """GET /todos"""

    def test_list_empty(self, client):
        response = client.get("/todos")

        assert response.status_code == 200
        assert response.json() == {"items": [], "page": 1, "limit": 10, "totalItems": 0}

    def test_default_pagination(self, client, make_todos):
        make_todos("Todo 1", "Todo 2", "Todo 3")

        data = client.get("/todos").json()
        assert [item["title"] for item in data["items"]] == ["Todo 1", "Todo 2", "Todo 3"]
        assert (data["page"], data["limit"], data["totalItems"]) == (1, 10, 3)

    @pytest.mark.parametrize("query,count,page", [
        ("page=1&limit=2", 2, 1),
        ("page=2&limit=2", 1, 2),
        ("page=3&limit=2", 0, 3),
    ])
    def test_custom_pagination(self, client, make_todos, query, count, page):
        make_todos("Todo 1", "Todo 2", "Todo 3")

        response = client.get(f"/todos?{query}")

        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == count
        assert data["page"] == page
        assert data["limit"] == 2
        assert data["totalItems"] == 3

    @pytest.mark.parametrize("query", ["page=abc&limit=xyz", "page=0&limit=0", "page=-1&limit=-10", "page=&limit="])
    def test_invalid_pagination_uses_defaults(self, client, make_todos, query):
        make_todos("Todo 1")

        data = client.get(f"/todos?{query}").json()
        assert (data["page"], data["limit"], len(data["items"])) == (1, 10, 1)

    def test_store_failure_returns_500(self, client, make_todos):
        """An undecodable record fails the whole listing with the raw error text."""
        make_todos("good")
        client.app.state.store.write_transaction(
            lambda tx: tx.collection("todos").put(encode_id(9), b"{broken")
        )

        response = client.get("/todos")

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("text/plain")
        assert "Todo" in response.text

    def test_store_not_open_returns_500(self, test_settings):
        """Without the lifespan there is no store to talk to."""
        response = TestClient(create_app(test_settings)).get("/todos")

        assert response.status_code == 500
        assert response.text == "database not open"


class TestGetTodo:
    """GET /todos/{id}"""

    def test_get_existing(self, client, make_todos):
        (created,) = make_todos("Read me")

        response = client.get(f"/todos/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    def test_get_missing(self, client):
        response = client.get("/todos/12345")

        assert response.status_code == 404
        assert response.text == "Todo not found"

    def test_get_invalid_id(self, client):
        response = client.get("/todos/abc")

        assert response.status_code == 400
        assert response.text == "Invalid ID"


class TestUpdateTodo:
    """PUT /todos/{id}"""

    def test_update_existing(self, client, make_todos):
        (created,) = make_todos("Initial todo")

        response = client.put(f"/todos/{created['id']}", json={"title": "Updated todo", "completed": True})

        assert response.status_code == 200
        assert response.json() == {"id": created["id"], "title": "Updated todo", "completed": True}
        assert client.get("/todos").json()["items"] == [response.json()]

    def test_update_nonexistent_creates(self, client):
        response = client.put("/todos/99999", json={"title": "X", "completed": True})

        assert response.status_code == 200
        assert response.json() == {"id": 99999, "title": "X", "completed": True}
        assert client.get("/todos/99999").status_code == 200

    def test_path_id_overrides_body_id(self, client):
        response = client.put("/todos/5", json={"id": 6, "title": "X"})

        assert response.status_code == 200
        assert response.json()["id"] == 5
        assert client.get("/todos/6").status_code == 404

    def test_update_is_idempotent(self, client):
        body = {"title": "Same", "completed": False}

        first = client.put("/todos/3", json=body)
        second = client.put("/todos/3", json=body)

        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()
        assert client.get("/todos").json()["totalItems"] == 1

    @pytest.mark.parametrize("todo_id", ["abc", "-1", "1.5", "18446744073709551616", "1_000"])
    def test_update_invalid_id(self, client, todo_id):
        response = client.put(f"/todos/{todo_id}", json={"title": "X"})

        assert response.status_code == 400
        assert response.text == "Invalid ID"

    def test_update_max_id(self, client):
        response = client.put("/todos/18446744073709551615", json={"title": "edge"})

        assert response.status_code == 200
        assert response.json()["id"] == 18446744073709551615

    def test_update_null_body(self, client):
        response = client.put("/todos/4", content=b"null", headers={"Content-Type": "application/json"})

        assert response.status_code == 200
        assert response.json() == {"id": 4, "title": "", "completed": False}

    @pytest.mark.parametrize("body,expected", [
        ({"title": None, "completed": True}, {"id": 4, "title": "", "completed": True}),
        ({"title": "x", "completed": None}, {"id": 4, "title": "x", "completed": False}),
    ])
    def test_update_null_fields_take_defaults(self, client, body, expected):
        response = client.put("/todos/4", json=body)

        assert response.status_code == 200
        assert response.json() == expected

    def test_update_malformed_body(self, client):
        response = client.put("/todos/1", content=b"not-json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert client.get("/todos/1").status_code == 404


class TestDeleteTodo:
    """DELETE /todos/{id}"""

    def test_delete_existing(self, client, make_todos):
        (created,) = make_todos("Todo to delete")

        response = client.delete(f"/todos/{created['id']}")

        assert response.status_code == 204
        assert response.content == b""
        assert client.get(f"/todos/{created['id']}").status_code == 404

    def test_delete_nonexistent(self, client):
        assert client.delete("/todos/99999").status_code == 204

    def test_delete_twice(self, client, make_todos):
        (created,) = make_todos("once")

        assert client.delete(f"/todos/{created['id']}").status_code == 204
        assert client.delete(f"/todos/{created['id']}").status_code == 204

    def test_delete_invalid_id(self, client):
        response = client.delete("/todos/abc")

        assert response.status_code == 400
        assert response.text == "Invalid ID"


class TestTodoLifecycle:
    """Create, list, update, paginate and delete against one running app."""

    def test_lifecycle(self, client, make_todos):
        created = client.post("/todos", json={"title": "Integration Test Todo", "completed": False})
        assert created.status_code == 201
        todo = created.json()

        listing = client.get("/todos").json()
        assert listing["totalItems"] == 1
        assert listing["items"][0]["id"] == todo["id"]

        updated = client.put(
            f"/todos/{todo['id']}",
            json={"title": "Updated Integration Test Todo", "completed": True},
        )
        assert updated.status_code == 200
        assert updated.json() == {"id": todo["id"], "title": "Updated Integration Test Todo", "completed": True}

        make_todos(*[f"Pagination Todo {i}" for i in range(5)])
        page = client.get("/todos?page=1&limit=3").json()
        assert (page["totalItems"], len(page["items"]), page["page"], page["limit"]) == (6, 3, 1, 3)

        assert client.delete(f"/todos/{todo['id']}").status_code == 204
        assert client.get(f"/todos/{todo['id']}").status_code == 404

    def test_data_survives_restart(self, test_settings):
        """A new app on the same file sees the old todos and continues the sequence."""
        with TestClient(create_app(test_settings)) as first:
            first.post("/todos", json={"title": "persisted"})

        with TestClient(create_app(test_settings)) as second:
            assert second.get("/todos").json()["items"] == [{"id": 1, "title": "persisted", "completed": False}]
            assert second.post("/todos", json={"title": "next"}).json()["id"] == 2
