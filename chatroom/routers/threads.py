from fastapi import APIRouter, Depends
from typing import Annotated, List
from chatroom.dependencies import get_readonly_chat_service
from chatroom.models import Message
from chatroom.services import ChatService

router = APIRouter(
    prefix="/users/{user_id}/messages",
    tags=["threads"],
    responses={404: {"description": "Not found"}},
)


@router.get("")
def get_thread_messages(
    user_id: str,
    service: Annotated[ChatService, Depends(get_readonly_chat_service)]
) -> List[Message]:
    return service.get_user_messages(user_id)
