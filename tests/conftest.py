from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from chatroom.app import create_app
from chatroom.dependencies import get_assistant_api, get_chat_service, get_readonly_chat_service, get_store
from chatroom.errors import RemoteAPIError
from chatroom.services import ChatService
from chatroom.store import MemoryStore


class FakeAssistantAPI:
    """Stands in for the OpenAI Assistants API.

    ``run_statuses`` is consumed one status per poll; the last one repeats.
    ``failing`` names methods that raise RemoteAPIError.
    """

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.run_statuses: List[str] = ["completed"]
        self.reply: Optional[Dict[str, Any]] = {
            "id": "msg_reply",
            "role": "assistant",
            "content": [{"type": "text", "text": {"value": "Hello from the assistant", "annotations": []}}],
        }
        self.failing: set = set()
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{self._counter}"

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name in self.failing:
            raise RemoteAPIError(f"OpenAI API error: {name} failed")

    def called(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    def create_assistant(self, name: str, instructions: str, model: str) -> dict:
        self._record("create_assistant", name, instructions, model)
        return {"id": self._next_id("asst"), "name": name, "model": model}

    def enable_file_search(self, assistant_id: str) -> dict:
        self._record("enable_file_search", assistant_id)
        return {"id": assistant_id}

    def delete_assistant(self, assistant_id: str) -> None:
        self._record("delete_assistant", assistant_id)

    def create_thread(self) -> dict:
        self._record("create_thread")
        return {"id": self._next_id("thread")}

    def delete_thread(self, thread_id: str) -> None:
        self._record("delete_thread", thread_id)

    def create_message(self, thread_id: str, content: str, file_id: Optional[str] = None) -> dict:
        self._record("create_message", thread_id, content, file_id)
        return {"id": self._next_id("msg"), "role": "user"}

    def list_messages(self, thread_id: str) -> List[dict]:
        self._record("list_messages", thread_id)
        question = {"id": "msg_question", "role": "user", "content": [{"type": "text", "text": {"value": "?"}}]}
        return [self.reply, question] if self.reply else [question]

    def create_run(self, thread_id: str, assistant_id: str) -> dict:
        self._record("create_run", thread_id, assistant_id)
        return {"id": self._next_id("run"), "status": "queued"}

    def retrieve_run(self, thread_id: str, run_id: str) -> dict:
        self._record("retrieve_run", thread_id, run_id)
        status = self.run_statuses.pop(0) if len(self.run_statuses) > 1 else self.run_statuses[0]
        return {"id": run_id, "status": status}

    def upload_file(self, filename: str, content: bytes, content_type: str) -> dict:
        self._record("upload_file", filename, content, content_type)
        return {"id": self._next_id("file"), "filename": filename, "bytes": len(content)}

    def delete_file(self, file_id: str) -> None:
        self._record("delete_file", file_id)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def api() -> FakeAssistantAPI:
    return FakeAssistantAPI()


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def service(store: MemoryStore, api: FakeAssistantAPI, sleeps: List[float]) -> ChatService:
    return ChatService(store, api, poll_interval=0.5, sleep=sleeps.append)


@pytest.fixture
def app(store: MemoryStore, api: FakeAssistantAPI, service: ChatService) -> FastAPI:
    app = create_app()
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_assistant_api] = lambda: api
    app.dependency_overrides[get_chat_service] = lambda: service
    app.dependency_overrides[get_readonly_chat_service] = lambda: ChatService(store, None)
    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def user(client: TestClient) -> Dict[str, Any]:
    response = client.post("/api/users", json={"name": "Ada"})
    assert response.status_code == 201
    return response.json()
