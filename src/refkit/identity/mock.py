"""Mock user id resolver for testing."""

from __future__ import annotations

from refkit.identity.base import UserIdResolver


class MockUserIdResolver(UserIdResolver):
    """Resolves user ids from a pre-configured email mapping.

    Emails are matched case-insensitively. Every lookup is recorded in
    ``calls``.
    """

    def __init__(self, mapping: dict[str, str] | None = None) -> None:
        self._mapping = {k.lower(): v for k, v in (mapping or {}).items()}
        self.calls: list[str] = []

    async def resolve_user_id(self, email: str) -> str | None:
        self.calls.append(email)
        return self._mapping.get(email.lower())
