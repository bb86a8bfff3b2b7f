"""Capability interfaces the freshness engine consumes."""

from smake_core.interfaces.filesystem import FileQueryError, FileSystem, LocalFileSystem
from smake_core.interfaces.node import DeclarationNode

__all__ = [
    "DeclarationNode",
    "FileQueryError",
    "FileSystem",
    "LocalFileSystem",
]
