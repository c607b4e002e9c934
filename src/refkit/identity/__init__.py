"""User id resolution for email-based lookups."""

from refkit.identity.base import UnconfiguredUserIdResolver, UserIdResolver
from refkit.identity.mock import MockUserIdResolver

__all__ = ["MockUserIdResolver", "UnconfiguredUserIdResolver", "UserIdResolver"]
