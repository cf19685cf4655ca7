import io

from fastapi.testclient import TestClient

from chatroom.config import Settings, get_settings
from chatroom.dependencies import get_assistant_api, get_chat_service, get_readonly_chat_service


def test_register_user_creates_assistant_and_thread(client: TestClient, store, api):
    response = client.post("/api/users", json={"name": "Ada"})

    assert response.status_code == 201
    user = response.json()
    assert user["name"] == "Ada"
    assert user["createdAt"]

    assistant = store.get("assistants", user["assistantId"])
    assert assistant["userId"] == user["id"]
    assert assistant["name"] == "Ada's Assistant"
    assert assistant["openaiAssistantId"] == "asst_1"
    assert assistant["threadId"] == "thread_2"

    name, instructions, model = api.called("create_assistant")[0][1:]
    assert name == "Ada's Assistant"
    assert "personal assistant for Ada" in instructions
    assert model == "gpt-4o"


def test_register_user_rejects_blank_name(client: TestClient, store):
    response = client.post("/api/users", json={"name": "   "})

    assert response.status_code == 400
    assert store.list("users") == []


def test_list_and_get_users(client: TestClient, user):
    assert [u["id"] for u in client.get("/api/users").json()] == [user["id"]]
    assert client.get(f"/api/users/{user['id']}").json()["name"] == "Ada"


def test_get_missing_user(client: TestClient):
    response = client.get("/api/users/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_delete_user_cascades(client: TestClient, store, api, user):
    client.post(f"/api/users/{user['id']}/files", files={"file": ("a.txt", io.BytesIO(b"aaa"), "text/plain")})
    client.post(f"/api/users/{user['id']}/files", files={"file": ("b.txt", io.BytesIO(b"bbb"), "text/plain")})
    client.post(f"/api/users/{user['id']}/assistant/questions", json={"question": "Hi?"})

    other = client.post("/api/users", json={"name": "Grace"}).json()
    client.post(f"/api/users/{other['id']}/assistant/questions", json={"question": "Hello?"})

    response = client.delete(f"/api/users/{user['id']}")

    assert response.status_code == 200
    assert [u["id"] for u in store.list("users")] == [other["id"]]
    assert store.list("files", {"userId": user["id"]}) == []
    assert store.list("assistants", {"userId": user["id"]}) == []
    assert store.list("messages", {"threadId": "thread_2"}) == []
    assert len(store.list("messages")) == 2

    assert len(api.called("delete_file")) == 2
    assert api.called("delete_assistant") == [("delete_assistant", "asst_1")]
    assert api.called("delete_thread") == [("delete_thread", "thread_2")]


def test_delete_user_continues_after_remote_failures(client: TestClient, store, api, user):
    client.post(f"/api/users/{user['id']}/files", files={"file": ("a.txt", io.BytesIO(b"aaa"), "text/plain")})
    api.failing = {"delete_file", "delete_assistant", "delete_thread"}

    response = client.delete(f"/api/users/{user['id']}")

    assert response.status_code == 200
    assert store.list("users") == []
    assert store.list("files") == []
    assert store.list("assistants") == []


def test_delete_missing_user(client: TestClient):
    assert client.delete("/api/users/nope").status_code == 404


def test_missing_api_key_is_a_configuration_error(client: TestClient):
    settings = Settings()
    settings.openai_api_key = None
    client.app.dependency_overrides[get_settings] = lambda: settings
    del client.app.dependency_overrides[get_assistant_api]
    del client.app.dependency_overrides[get_chat_service]

    response = client.post("/api/users", json={"name": "Ada"})

    assert response.status_code == 500
    assert response.json() == {"error": "OpenAI API key is not set"}


def test_listing_users_needs_no_api_key(client: TestClient, user):
    settings = Settings()
    settings.openai_api_key = None
    client.app.dependency_overrides[get_settings] = lambda: settings
    del client.app.dependency_overrides[get_readonly_chat_service]

    assert client.get("/api/users").status_code == 200


def test_malformed_user_records_are_skipped_in_listing(client: TestClient, user):
    raw = client.post("/users", json={"nickname": "raw"})
    assert raw.status_code == 201

    response = client.get("/api/users")

    assert response.status_code == 200
    assert [u["id"] for u in response.json()] == [user["id"]]


def test_malformed_user_record_lookup_is_an_error_body(client: TestClient):
    raw = client.post("/users", json={"nickname": "raw"}).json()

    response = client.get(f"/api/users/{raw['id']}")

    assert response.status_code == 500
    assert response.json() == {"error": "Malformed User record"}


def test_delete_user_removes_malformed_files_too(client: TestClient, store, user):
    client.post("/files", json={"userId": user["id"], "name": "broken"})

    assert client.delete(f"/api/users/{user['id']}").status_code == 200
    assert store.list("files") == []
