from __future__ import annotations

from typing import Protocol

from pulse_chat.application.dto.principal import Principal


class TokenVerifier(Protocol):
    """Turns a bearer token into the caller's identity.

    Implementations raise on expired, malformed or wrongly signed tokens. The
    token subject becomes ``Principal.external_id``.
    """

    async def verify(self, token: str) -> Principal: ...
