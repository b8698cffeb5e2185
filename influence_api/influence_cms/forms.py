"""Turn either request shape (JSON body or multipart form) into one finalized entity."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterable, List, Optional

from starlette.datastructures import FormData, UploadFile

from influence_cms.entities import MAX_IMAGES, MAX_LINKS, EntityBase, EntityKind
from influence_cms.uploads import UploadStore

log = logging.getLogger(__name__)

LINK_FIELDS = tuple(f"link{i}" for i in range(1, MAX_LINKS + 1))


def clamp_strings(values: Iterable[str], limit: int) -> List[str]:
    return list(values)[:limit]


def unique_strings(values: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for v in values:
        if not v or v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


def _form_text(form: FormData, key: str) -> str:
    v = form.get(key)
    return v if isinstance(v, str) else ""


def _uploads(form: FormData, key: str) -> List[UploadFile]:
    # An empty file input arrives as a part without a filename.
    return [v for v in form.getlist(key) if isinstance(v, UploadFile) and v.filename]


def parse_links_from_form(form: FormData) -> List[str]:
    """Collect links from repeated ``links`` values, then ``link1``..``link5``."""
    links: List[str] = []
    for v in form.getlist("links"):
        if isinstance(v, str) and v.strip():
            links.append(v.strip())
    for key in LINK_FIELDS:
        v = _form_text(form, key).strip()
        if v:
            links.append(v)
    return clamp_strings(unique_strings(links), MAX_LINKS)


def finalize(kind: EntityKind, entity: EntityBase) -> EntityBase:
    """Apply list caps and derive ``img`` from the first image."""
    images = clamp_strings(entity.images, MAX_IMAGES)
    update: dict = {"images": images, "img": images[0] if images else ""}
    if kind.has_links:
        update["links"] = clamp_strings(unique_strings(entity.links), MAX_LINKS)
    return entity.model_copy(update=update)


def entity_from_json(kind: EntityKind, body: Any) -> EntityBase:
    """Validate a decoded JSON body. Raises pydantic.ValidationError on bad shapes."""
    entity = kind.model.model_validate(body)
    return finalize(kind, entity)


def _save_all(store: UploadStore, files: List[UploadFile]) -> List[str]:
    return [store.save(f.file, f.filename or "") for f in files[:MAX_IMAGES]]


def _previous_images(raw: str) -> List[str]:
    raw = raw.strip()
    if not raw:
        return []
    try:
        v = json.loads(raw)
    except ValueError:
        log.warning("Ignoring malformed imagesOld payload")
        return []
    if not isinstance(v, list):
        return []
    return [x for x in v if isinstance(x, str)]


def entity_from_form(
    kind: EntityKind,
    form: FormData,
    store: UploadStore,
    *,
    current_images: Optional[Callable[[], List[str]]] = None,
) -> EntityBase:
    """Build an entity from a multipart form, saving any uploaded files.

    ``current_images`` marks an update: it is called to reuse the stored list
    when the form carries no ``imagesOld``. On create the single ``img`` file is
    only a fallback for ``imgs``; on update it is prepended to the list.
    """
    legacy = _uploads(form, "img")[:1]

    if current_images is None:
        images = _save_all(store, _uploads(form, "imgs"))
        if not images and legacy:
            images = _save_all(store, legacy)
    else:
        images = _previous_images(_form_text(form, "imagesOld"))
        if not images:
            images = list(current_images())
        images += _save_all(store, _uploads(form, "imgs"))
        if legacy:
            images = _save_all(store, legacy) + images

    data: dict = {
        "images": images,
        "title": _form_text(form, "title"),
        "title_uz": _form_text(form, "title_uz"),
        "title_en": _form_text(form, "title_en"),
        "description": _form_text(form, "description"),
        "description_uz": _form_text(form, "description_uz"),
        "description_en": _form_text(form, "description_en"),
    }
    if kind.has_location:
        data["location"] = _form_text(form, "location")
    if kind.has_links:
        data["links"] = parse_links_from_form(form)

    return finalize(kind, kind.model(**data))
