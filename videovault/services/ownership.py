"""
Ownership guard.
Every update/delete of a video or playlist, and every playlist membership
change, passes through `authorize`: NotFound is raised before Forbidden.
"""
import functools
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from videovault.core.exceptions import ForbiddenError, NotFoundError
from videovault.core.identifiers import require_valid_id

logger = logging.getLogger(__name__)

R = TypeVar("R")


class Action(str, Enum):
    """Owner-gated actions, phrased for error messages."""

    UPDATE = "update"
    DELETE = "delete"
    TOGGLE_PUBLISH = "toggle publish status of"
    ADD_VIDEO = "add video to"
    REMOVE_VIDEO = "remove video from"


def authorize(
    resource: Optional[Dict[str, Any]],
    viewer_id: str,
    action: Action,
    resource_name: str,
    resource_id: str = "",
) -> Dict[str, Any]:
    """
    Permit `action` only for the resource's owner.

    Raises:
        NotFoundError: If the resource does not exist
        ForbiddenError: If the viewer is not the owner
    """
    if resource is None:
        raise NotFoundError(resource_name, resource_id)

    if resource.get("owner") != viewer_id:
        logger.warning(
            f"Denied {action.name} on {resource_name} {resource.get('id')} "
            f"for viewer {viewer_id}"
        )
        raise ForbiddenError(resource_name, action.value)

    return resource


def owner_gated(
    collection: str,
    resource_name: str,
    action: Action,
) -> Callable[[Callable[..., Awaitable[R]]], Callable[..., Awaitable[R]]]:
    """
    Decorate a service method so it receives the loaded, authorized resource.

    The decorated method is called as `method(resource_id, viewer_id, ...)`
    and runs as `method(resource_document, viewer_id, ...)`. The service must
    expose its entity store as `self._store`.
    """

    def decorator(func: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(self: Any, resource_id: str, viewer_id: str, *args: Any, **kwargs: Any) -> R:
            require_valid_id(resource_id, f"{resource_name}Id")
            document = await self._store.collection(collection).find_by_id(resource_id)
            authorize(document, viewer_id, action, resource_name, resource_id)
            return await func(self, document, viewer_id, *args, **kwargs)

        return wrapper

    return decorator
