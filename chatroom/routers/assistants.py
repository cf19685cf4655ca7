from fastapi import APIRouter, Depends, Body, HTTPException
from typing import Annotated
from chatroom.dependencies import get_chat_service, get_readonly_chat_service
from chatroom.models import Assistant, Message, QuestionData
from chatroom.services import ChatService

router = APIRouter(
    prefix="/users/{user_id}/assistant",
    tags=["assistants"],
    responses={404: {"description": "Not found"}},
)


@router.get("")
def get_assistant(
    user_id: str,
    service: Annotated[ChatService, Depends(get_readonly_chat_service)]
) -> Assistant:
    return service.get_user_assistant(user_id)


@router.post("/questions")
def ask_question(
    user_id: str,
    service: Annotated[ChatService, Depends(get_chat_service)],
    question_data: QuestionData = Body()
) -> Message:
    question = question_data.question.strip()
    if not question:
        raise HTTPException(status_code=400, detail="Question must not be empty")

    # runs in the threadpool; blocks this request until the remote run completes or fails
    return service.ask_question(user_id, question)
