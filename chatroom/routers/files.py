from fastapi import APIRouter, Depends, HTTPException, File, UploadFile
from typing import Annotated, List
from chatroom.dependencies import get_chat_service, get_readonly_chat_service
from chatroom import models
from chatroom.services import ChatService

router = APIRouter(
    tags=["files"],
    responses={404: {"description": "Not found"}},
)


@router.post("/users/{user_id}/files", status_code=201)
def upload_file(
    user_id: str,
    service: Annotated[ChatService, Depends(get_chat_service)],
    file: UploadFile = File()
) -> models.File:
    content = file.file.read()
    if not file.filename or not content:
        raise HTTPException(status_code=400, detail="No upload file sent")

    content_type = file.content_type or "application/octet-stream"
    return service.upload_file(user_id, file.filename, content, content_type)


@router.get("/users/{user_id}/files")
def list_user_files(
    user_id: str,
    service: Annotated[ChatService, Depends(get_readonly_chat_service)]
) -> List[models.File]:
    return service.list_user_files(user_id)


@router.get("/files/{file_id}/content")
def get_file_content(
    file_id: str,
    service: Annotated[ChatService, Depends(get_readonly_chat_service)]
) -> models.FileContent:
    return service.get_file_content(file_id)


@router.delete("/files/{file_id}")
def delete_file(
    file_id: str,
    service: Annotated[ChatService, Depends(get_chat_service)]
) -> models.File:
    return service.delete_file(file_id)
