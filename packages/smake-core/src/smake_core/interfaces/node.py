"""Generic declarative-node capability that rules are built from."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DeclarationNode(Protocol):
    """A tree node with a tag name, typed leaf values, and child nodes.

    Any configuration-tree representation exposing these three attributes can
    be turned into rules; the concrete source format does not matter.
    """

    @property
    def name(self) -> str: ...

    @property
    def values(self) -> Sequence[Any]: ...

    @property
    def children(self) -> Sequence[DeclarationNode]: ...
