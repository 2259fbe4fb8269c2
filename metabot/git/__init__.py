"""Source control and forge integration."""

from .forge import ForgeClient, ForgeError, PullRequestOptions, forge_for
from .publisher import PublishResult, Publisher
from .repository import GitError, RepositoryManager

__all__ = [
    "ForgeClient",
    "ForgeError",
    "GitError",
    "PublishResult",
    "Publisher",
    "PullRequestOptions",
    "RepositoryManager",
    "forge_for",
]
