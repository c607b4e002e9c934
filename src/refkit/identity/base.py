"""Abstract base class for user id resolution."""

from __future__ import annotations

from abc import ABC, abstractmethod

from refkit.errors import UserIdResolutionNotImplementedError


class UserIdResolver(ABC):
    """Maps a user's email address to their directory object id.

    The Cosmos store uses this for :meth:`get_user_by_user_email`. A real
    implementation typically calls Microsoft Graph.
    """

    @abstractmethod
    async def resolve_user_id(self, email: str) -> str | None:
        """Return the AAD object id for *email*, or ``None`` if unknown."""
        ...


class UnconfiguredUserIdResolver(UserIdResolver):
    """Default resolver that refuses every lookup."""

    async def resolve_user_id(self, email: str) -> str | None:
        raise UserIdResolutionNotImplementedError(
            "No UserIdResolver is configured; pass user_id_resolver= to the store "
            "to look up users by email"
        )
