from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from openai import OpenAI

from chatroom.assistant_api import AssistantAPI
from chatroom.config import Settings, get_settings
from chatroom.errors import ConfigurationError
from chatroom.services import ChatService
from chatroom.store import FlatStore, JsonFileStore


@lru_cache(maxsize=None)
def open_store(path: str) -> JsonFileStore:
    return JsonFileStore(path)


async def get_store(settings: Annotated[Settings, Depends(get_settings)]) -> FlatStore:
    return open_store(settings.db_path)


async def get_openai_client(settings: Annotated[Settings, Depends(get_settings)]):
    if not settings.openai_api_key:
        raise ConfigurationError("OpenAI API key is not set")
    client = OpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
    )
    try:
        yield client
    finally:
        client.close()


async def get_assistant_api(client: Annotated[OpenAI, Depends(get_openai_client)]) -> AssistantAPI:
    return AssistantAPI(client)


async def get_chat_service(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[FlatStore, Depends(get_store)],
    api: Annotated[AssistantAPI, Depends(get_assistant_api)],
) -> ChatService:
    return ChatService(store, api, model=settings.openai_model, poll_interval=settings.poll_interval)


async def get_readonly_chat_service(store: Annotated[FlatStore, Depends(get_store)]) -> ChatService:
    """Service for lookups that never reach the assistant service, so no API key is needed."""
    return ChatService(store, None)
