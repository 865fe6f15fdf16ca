"""Local state: the on-disk document and the in-memory workspace."""

from .local import LocalStore
from .workspace import Workspace

__all__ = ["LocalStore", "Workspace"]
