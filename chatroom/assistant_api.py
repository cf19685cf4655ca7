import functools
import logging
from typing import List, Optional

import openai
from openai import NOT_GIVEN, OpenAI

from chatroom.errors import RemoteAPIError

logger = logging.getLogger(__name__)

FILE_SEARCH_TOOL = {"type": "file_search"}


def remote_call(func):
    """Translate SDK failures into RemoteAPIError carrying the remote message."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except openai.APIError as e:
            logger.error("OpenAI API error in %s: %s", func.__name__, e.message)
            raise RemoteAPIError(f"OpenAI API error: {e.message}") from e

    return wrapper


class AssistantAPI:
    """The subset of the OpenAI Assistants (v2) and Files API the chatroom uses.

    Results are returned as plain dicts.
    """

    def __init__(self, client: OpenAI):
        self.client = client

    @remote_call
    def create_assistant(self, name: str, instructions: str, model: str) -> dict:
        assistant = self.client.beta.assistants.create(
            name=name,
            instructions=instructions,
            model=model,
            tools=[FILE_SEARCH_TOOL],
        )
        logger.info("Created remote assistant %s", assistant.id)
        return assistant.model_dump()

    @remote_call
    def enable_file_search(self, assistant_id: str) -> dict:
        return self.client.beta.assistants.update(assistant_id=assistant_id, tools=[FILE_SEARCH_TOOL]).model_dump()

    @remote_call
    def delete_assistant(self, assistant_id: str) -> None:
        self.client.beta.assistants.delete(assistant_id=assistant_id)
        logger.info("Deleted remote assistant %s", assistant_id)

    @remote_call
    def create_thread(self) -> dict:
        thread = self.client.beta.threads.create()
        logger.info("Created remote thread %s", thread.id)
        return thread.model_dump()

    @remote_call
    def delete_thread(self, thread_id: str) -> None:
        self.client.beta.threads.delete(thread_id=thread_id)
        logger.info("Deleted remote thread %s", thread_id)

    @remote_call
    def create_message(self, thread_id: str, content: str, file_id: Optional[str] = None) -> dict:
        attachments = [{"file_id": file_id, "tools": [FILE_SEARCH_TOOL]}] if file_id else NOT_GIVEN
        message = self.client.beta.threads.messages.create(
            thread_id=thread_id, role="user", content=content, attachments=attachments
        )
        return message.model_dump()

    @remote_call
    def list_messages(self, thread_id: str) -> List[dict]:
        messages = self.client.beta.threads.messages.list(thread_id=thread_id, order="desc")
        return [message.model_dump() for message in messages.data]

    @remote_call
    def create_run(self, thread_id: str, assistant_id: str) -> dict:
        run = self.client.beta.threads.runs.create(
            thread_id=thread_id,
            assistant_id=assistant_id,
            tools=[FILE_SEARCH_TOOL],
        )
        logger.info("Started run %s on thread %s", run.id, thread_id)
        return run.model_dump()

    @remote_call
    def retrieve_run(self, thread_id: str, run_id: str) -> dict:
        return self.client.beta.threads.runs.retrieve(thread_id=thread_id, run_id=run_id).model_dump()

    @remote_call
    def upload_file(self, filename: str, content: bytes, content_type: str) -> dict:
        uploaded = self.client.files.create(file=(filename, content, content_type), purpose="assistants")
        logger.info("Uploaded %s as remote file %s", filename, uploaded.id)
        return uploaded.model_dump()

    @remote_call
    def delete_file(self, file_id: str) -> None:
        self.client.files.delete(file_id)
        logger.info("Deleted remote file %s", file_id)
