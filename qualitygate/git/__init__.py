"""Git access and change-set resolution."""

from .gateway import GitError, GitGateway
from .resolver import ChangeSetResolver, Fallback, TraversalState

__all__ = [
    "ChangeSetResolver",
    "Fallback",
    "GitError",
    "GitGateway",
    "TraversalState",
]
