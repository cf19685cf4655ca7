from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Literal, Optional


class Record(BaseModel):
    """A flat store record. Stored and served with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    created_at: str


class User(Record):
    name: str
    assistant_id: Optional[str] = None


class Assistant(Record):
    user_id: str
    openai_assistant_id: str
    name: str = ""
    thread_id: Optional[str] = None


class File(Record):
    user_id: str
    name: str
    size: int
    type: str
    openai_file_id: str
    assistant_id: str


class Message(Record):
    thread_id: str
    content: str
    role: Literal["user", "assistant"]


class UserData(BaseModel):
    name: str


class QuestionData(BaseModel):
    question: str


class FileContent(BaseModel):
    content: str
    url: str
