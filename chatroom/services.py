"""Chat flows that span the flat store and the remote assistant service.

None of these flows are transactional. A failure part way through leaves the
local store and the remote service out of step; callers retry the whole flow.
"""

import base64
import logging
import time
from typing import Callable, List, Optional

from pydantic import ValidationError

from chatroom.assistant_api import AssistantAPI
from chatroom.errors import NotFoundError, RemoteAPIError, RunFailedError
from chatroom.models import Assistant, File, FileContent, Message, User
from chatroom.store import FlatStore

logger = logging.getLogger(__name__)

TERMINAL_RUN_STATUSES = ("completed", "failed")

UNAVAILABLE_NOTE = (
    "Note: OpenAI doesn't allow direct download of assistant files. "
    "The content isn't accessible outside of the assistant's context."
)


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def text_url(text: str) -> str:
    return "data:text/plain;base64," + base64.b64encode(text.encode("utf-8")).decode("ascii")


def parse_records(model, records: List[dict]) -> list:
    """Build models from raw store records, skipping ones that do not fit the model."""
    parsed = []
    for record in records:
        try:
            parsed.append(model(**record))
        except ValidationError as e:
            logger.warning("Skipping malformed %s record %s: %d error(s)", model.__name__, record.get("id"), e.error_count())
    return parsed


def message_text(message: dict) -> str:
    """Text of the first content block, or empty if it is not a text block."""
    content = message.get("content") or []
    if content and content[0].get("type") == "text":
        return content[0]["text"]["value"]
    return ""


class ChatService:
    def __init__(
        self,
        store: FlatStore,
        api: Optional[AssistantAPI],
        model: str = "gpt-4o",
        poll_interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.api = api
        self.model = model
        self.poll_interval = poll_interval
        self.sleep = sleep

    # lookups

    def list_users(self) -> List[User]:
        return parse_records(User, self.store.list("users"))

    def get_user(self, user_id: str) -> User:
        try:
            return User(**self.store.get("users", user_id))
        except NotFoundError:
            raise NotFoundError("User not found") from None

    def find_assistant(self, user_id: str) -> Optional[Assistant]:
        record = self.store.find_one("assistants", {"userId": user_id})
        return Assistant(**record) if record else None

    def get_user_assistant(self, user_id: str) -> Assistant:
        assistant = self.find_assistant(user_id)
        if assistant is None:
            raise NotFoundError("Assistant not found for this user")
        return assistant

    def list_user_files(self, user_id: str) -> List[File]:
        return parse_records(File, self.store.list("files", {"userId": user_id}))

    def get_user_messages(self, user_id: str) -> List[Message]:
        assistant = self.find_assistant(user_id)
        if assistant is None or not assistant.thread_id:
            return []
        records = self.store.list("messages", {"threadId": assistant.thread_id, "_sort": "createdAt", "_order": "asc"})
        return parse_records(Message, records)

    # flows

    def create_user_with_assistant(self, name: str) -> User:
        user = self.store.create("users", {"name": name})

        assistant_name = f"{name}'s Assistant"
        remote_assistant = self.api.create_assistant(
            name=assistant_name,
            instructions=(
                f"You are a personal assistant for {name}. Use the knowledge from "
                "attached files to provide accurate and helpful responses."
            ),
            model=self.model,
        )
        thread = self.api.create_thread()

        assistant = self.store.create(
            "assistants",
            {
                "userId": user["id"],
                "openaiAssistantId": remote_assistant["id"],
                "name": assistant_name,
                "threadId": thread["id"],
            },
        )
        user = self.store.patch("users", user["id"], {"assistantId": assistant["id"]})
        logger.info("Created user %s with assistant %s", user["id"], assistant["id"])
        return User(**user)

    def ensure_thread(self, assistant: Assistant) -> str:
        """Return the assistant's thread id, creating and recording a thread if it has none."""
        if assistant.thread_id:
            return assistant.thread_id

        thread = self.api.create_thread()
        self.store.patch("assistants", assistant.id, {"threadId": thread["id"]})
        assistant.thread_id = thread["id"]
        return thread["id"]

    def upload_file(self, user_id: str, filename: str, content: bytes, content_type: str) -> File:
        self.get_user(user_id)
        assistant = self.get_user_assistant(user_id)

        uploaded = self.api.upload_file(filename, content, content_type)
        self.api.enable_file_search(assistant.openai_assistant_id)

        thread_id = self.ensure_thread(assistant)
        self.api.create_message(
            thread_id,
            f"I'm uploading {filename} for future reference.",
            file_id=uploaded["id"],
        )

        record = self.store.create(
            "files",
            {
                "userId": user_id,
                "name": filename,
                "size": len(content),
                "type": content_type,
                "openaiFileId": uploaded["id"],
                "assistantId": assistant.id,
            },
        )
        return File(**record)

    def wait_for_run(self, thread_id: str, run_id: str) -> dict:
        """Poll a run until it completes or fails.

        There is no timeout: a run that never reaches a terminal status keeps
        this loop (and the calling request) waiting indefinitely.
        """
        run = self.api.retrieve_run(thread_id, run_id)
        while run["status"] not in TERMINAL_RUN_STATUSES:
            logger.debug("Run %s is %s", run_id, run["status"])
            self.sleep(self.poll_interval)
            run = self.api.retrieve_run(thread_id, run_id)

        logger.info("Run %s finished with status %s", run_id, run["status"])
        return run

    def ask_question(self, user_id: str, question: str) -> Message:
        self.get_user(user_id)
        assistant = self.get_user_assistant(user_id)
        thread_id = self.ensure_thread(assistant)

        self.store.create("messages", {"threadId": thread_id, "content": question, "role": "user"})

        self.api.create_message(thread_id, question)
        run = self.api.create_run(thread_id, assistant.openai_assistant_id)
        run = self.wait_for_run(thread_id, run["id"])

        if run["status"] == "failed":
            raise RunFailedError("Assistant run failed")

        messages = self.api.list_messages(thread_id)
        reply = next((message for message in messages if message.get("role") == "assistant"), None)
        if reply is None:
            raise RemoteAPIError("No response from assistant")

        record = self.store.create(
            "messages",
            {"threadId": thread_id, "content": message_text(reply), "role": "assistant"},
        )
        return Message(**record)

    def delete_file(self, file_id: str) -> File:
        file = File(**self.store.get("files", file_id))

        if file.openai_file_id:
            try:
                self.api.delete_file(file.openai_file_id)
            except RemoteAPIError as e:
                logger.warning("Keeping remote file %s after delete error: %s", file.openai_file_id, e.message)

        self.store.delete("files", file_id)
        return file

    def get_file_content(self, file_id: str) -> FileContent:
        file = File(**self.store.get("files", file_id))

        if file.type == "text/plain":
            content = (
                f"# {file.name}\n\nFile ID: {file.id}\nSize: {format_file_size(file.size)}\n"
                f"Type: {file.type}\n\n{UNAVAILABLE_NOTE}"
            )
            return FileContent(content=content, url=text_url(content))

        if file.type == "application/pdf":
            placeholder = (
                f'PDF file "{file.name}" is attached to the assistant but can\'t be '
                "displayed directly due to OpenAI API limitations."
            )
            return FileContent(
                content=(
                    "[PDF Content] - OpenAI doesn't allow direct download of assistant files. "
                    "The PDF content is only accessible to the assistant during conversation."
                ),
                url=text_url(placeholder),
            )

        return FileContent(content="", url="#")

    def delete_user(self, user_id: str) -> User:
        """Delete a user with its files, assistant, thread and messages.

        Remote deletions are best effort: errors are logged and the local
        cascade carries on.
        """
        user = self.get_user(user_id)
        assistant = self.find_assistant(user_id)

        for file in self.list_user_files(user_id):
            try:
                self.api.delete_file(file.openai_file_id)
            except RemoteAPIError as e:
                logger.error("Error deleting file %s: %s", file.id, e.message)
            self.store.delete("files", file.id)
        self.store.delete_where("files", {"userId": user_id})

        if assistant is not None:
            try:
                self.api.delete_assistant(assistant.openai_assistant_id)
            except RemoteAPIError as e:
                logger.error("Error deleting OpenAI assistant: %s", e.message)

            if assistant.thread_id:
                try:
                    self.api.delete_thread(assistant.thread_id)
                except RemoteAPIError as e:
                    logger.error("Error deleting OpenAI thread: %s", e.message)
                self.store.delete_where("messages", {"threadId": assistant.thread_id})

            self.store.delete_where("assistants", {"userId": user_id})

        self.store.delete("users", user_id)
        logger.info("Deleted user %s", user_id)
        return user
