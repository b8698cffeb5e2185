"""Entity models and the per-table descriptors that drive the generic repository.

Blog posts, projects and LED screens share one shape; they only differ in
whether a ``links`` list or a ``location`` field applies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Tuple, Type

from pydantic import BaseModel, Field, model_validator

MAX_IMAGES = 10
MAX_LINKS = 5

LOCALIZED_FIELDS = ("title_uz", "title_en", "description_uz", "description_en")


class EntityBase(BaseModel):
    id: int = 0
    img: str = ""
    images: List[str] = Field(default_factory=list)
    title: str = ""
    title_uz: str = ""
    title_en: str = ""
    description: str = ""
    description_uz: str = ""
    description_en: str = ""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # JSON null means "not given": text stays "", lists stay [].
        # A null inside a list reads as "".
        if not isinstance(data, dict):
            return data
        out = {}
        for k, v in data.items():
            if v is None:
                continue
            if isinstance(v, list):
                v = ["" if x is None else x for x in v]
            out[k] = v
        return out


class BlogPost(EntityBase):
    links: List[str] = Field(default_factory=list)


class Project(EntityBase):
    links: List[str] = Field(default_factory=list)


class LedItem(EntityBase):
    location: str = ""


@dataclass(frozen=True)
class EntityKind:
    name: str
    table: str
    model: Type[EntityBase]
    has_links: bool = False
    has_location: bool = False

    @property
    def text_columns(self) -> Tuple[str, ...]:
        cols = ("img", "title", "title_uz", "title_en", "description", "description_uz", "description_en")
        if self.has_location:
            cols += ("location",)
        return cols

    @property
    def json_columns(self) -> Tuple[str, ...]:
        return ("images", "links") if self.has_links else ("images",)

    @property
    def columns(self) -> Tuple[str, ...]:
        return self.text_columns + self.json_columns

    @property
    def optional_columns(self) -> Tuple[str, ...]:
        """Columns added on startup when an older table lacks them."""
        cols = ("images",)
        if self.has_links:
            cols += ("links",)
        if self.has_location:
            cols += ("location",)
        return cols + LOCALIZED_FIELDS


BLOG = EntityKind(name="blog", table="blog", model=BlogPost, has_links=True)
PROJECTS = EntityKind(name="projects", table="projects", model=Project, has_links=True)
LED = EntityKind(name="led", table="led", model=LedItem, has_location=True)

ENTITY_KINDS: Tuple[EntityKind, ...] = (BLOG, PROJECTS, LED)
