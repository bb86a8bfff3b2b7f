"""Concrete declarative node produced by the project-file loader."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Tag(BaseModel):
    """A tag with typed leaf values and ordered child tags."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    values: tuple[Any, ...] = ()
    children: tuple[Tag, ...] = ()
