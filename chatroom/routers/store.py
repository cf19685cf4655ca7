from fastapi import APIRouter, Depends, Body, Request
from typing import Annotated, Any, Dict, List
from chatroom.dependencies import get_store
from chatroom.store import FlatStore

# json-server style access to the raw collections
router = APIRouter(
    prefix="/{resource}",
    tags=["store"],
    responses={404: {"description": "Not found"}},
)


@router.get("")
def list_records(
    resource: str,
    request: Request,
    store: Annotated[FlatStore, Depends(get_store)]
) -> List[Dict[str, Any]]:
    return store.list(resource, dict(request.query_params))


@router.post("", status_code=201)
def create_record(
    resource: str,
    store: Annotated[FlatStore, Depends(get_store)],
    data: Dict[str, Any] = Body()
) -> Dict[str, Any]:
    return store.create(resource, data)


@router.get("/{id}")
def get_record(
    resource: str,
    id: str,
    store: Annotated[FlatStore, Depends(get_store)]
) -> Dict[str, Any]:
    return store.get(resource, id)


@router.put("/{id}")
def replace_record(
    resource: str,
    id: str,
    store: Annotated[FlatStore, Depends(get_store)],
    data: Dict[str, Any] = Body()
) -> Dict[str, Any]:
    return store.replace(resource, id, data)


@router.patch("/{id}")
def update_record(
    resource: str,
    id: str,
    store: Annotated[FlatStore, Depends(get_store)],
    data: Dict[str, Any] = Body()
) -> Dict[str, Any]:
    return store.patch(resource, id, data)


@router.delete("/{id}")
def delete_record(
    resource: str,
    id: str,
    store: Annotated[FlatStore, Depends(get_store)]
) -> Dict[str, Any]:
    return store.delete(resource, id)
