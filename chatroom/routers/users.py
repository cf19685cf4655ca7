from fastapi import APIRouter, Depends, Body, HTTPException
from typing import Annotated, List
from chatroom.dependencies import get_chat_service, get_readonly_chat_service
from chatroom.models import User, UserData
from chatroom.services import ChatService

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={404: {"description": "Not found"}},
)


@router.post("", status_code=201)
def register_user(
    service: Annotated[ChatService, Depends(get_chat_service)],
    user_data: UserData = Body()
) -> User:
    name = user_data.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="User name must not be empty")

    return service.create_user_with_assistant(name)


@router.get("")
def list_users(
    service: Annotated[ChatService, Depends(get_readonly_chat_service)]
) -> List[User]:
    return service.list_users()


@router.get("/{user_id}")
def get_user(
    user_id: str,
    service: Annotated[ChatService, Depends(get_readonly_chat_service)]
) -> User:
    return service.get_user(user_id)


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    service: Annotated[ChatService, Depends(get_chat_service)]
) -> User:
    return service.delete_user(user_id)
