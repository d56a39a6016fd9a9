from __future__ import annotations

import jwt

from pulse_chat.application.dto.principal import Principal


def claims_to_principal(payload: dict) -> Principal:
    subject = payload.get("sub")
    if not subject:
        raise jwt.InvalidTokenError("Token has no subject")
    return Principal(external_id=str(subject), session_id=payload.get("sid"))


class HS256Verifier:
    """Verify JWTs signed with a shared HS256 secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Principal:
        payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        return claims_to_principal(payload)
