"""CRUD routes shared by blog posts, projects and LED screens."""

from __future__ import annotations

from typing import Any, List

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError

from influence_cms.api.schemas import StatusResponse
from influence_cms.db.repo import EntityRepo
from influence_cms.entities import LOCALIZED_FIELDS, EntityBase, EntityKind
from influence_cms.forms import entity_from_form, entity_from_json


def is_multipart(request: Request) -> bool:
    return request.headers.get("content-type", "").startswith("multipart/form-data")


async def read_json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON")


async def _json_entity(kind: EntityKind, request: Request) -> EntityBase:
    body = await read_json_body(request)
    try:
        return entity_from_json(kind, body)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid JSON")


def register_entity_routes(router: APIRouter, kind: EntityKind) -> None:
    base = f"/{kind.name}"

    def _repo(request: Request) -> EntityRepo:
        return request.app.state.entities[kind.name]

    @router.get(base, response_model=List[kind.model], name=f"list_{kind.name}")
    async def list_items(request: Request) -> List[Any]:
        return _repo(request).list()

    @router.post(base, response_model=kind.model, name=f"create_{kind.name}")
    async def create_item(request: Request) -> EntityBase:
        repo = _repo(request)
        if is_multipart(request):
            async with request.form() as form:
                entity = entity_from_form(kind, form, request.app.state.uploads)
            created = repo.create(entity)
            # Form submissions only echo the primary-language fields.
            return created.model_copy(update={f: "" for f in LOCALIZED_FIELDS})

        entity = await _json_entity(kind, request)
        return repo.create(entity)

    @router.api_route(f"{base}/", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], name=f"{kind.name}_missing_id")
    async def missing_id() -> None:
        raise HTTPException(status_code=400, detail="Missing id")

    @router.get(base + "/{item_id}", response_model=kind.model, name=f"get_{kind.name}")
    async def get_item(request: Request, item_id: int) -> EntityBase:
        entity = _repo(request).get(item_id)
        if entity is None:
            raise HTTPException(status_code=404, detail="Not found")
        return entity

    @router.api_route(base + "/{item_id}", methods=["POST", "PUT"], response_model=StatusResponse, name=f"update_{kind.name}")
    async def update_item(request: Request, item_id: int) -> StatusResponse:
        repo = _repo(request)
        if is_multipart(request):
            async with request.form() as form:
                entity = entity_from_form(
                    kind,
                    form,
                    request.app.state.uploads,
                    current_images=lambda: repo.images(item_id),
                )
        else:
            entity = await _json_entity(kind, request)

        repo.update(item_id, entity)
        return StatusResponse()

    @router.delete(base + "/{item_id}", response_model=StatusResponse, name=f"delete_{kind.name}")
    async def delete_item(request: Request, item_id: int) -> StatusResponse:
        _repo(request).delete(item_id)
        return StatusResponse()
