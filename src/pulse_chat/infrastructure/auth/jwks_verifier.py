from __future__ import annotations

import asyncio
import logging

import jwt
from jwt import PyJWKClient

from pulse_chat.application.dto.principal import Principal
from pulse_chat.infrastructure.auth.hs256_verifier import claims_to_principal

logger = logging.getLogger(__name__)


class JWKSVerifier:
    """Verify identity-provider session tokens against a remote JWKS endpoint."""

    def __init__(self, jwks_url: str, issuer: str | None = None) -> None:
        self._jwks_url = jwks_url
        self._issuer = issuer
        self._jwk_client = PyJWKClient(jwks_url)

    async def verify(self, token: str) -> Principal:
        # PyJWKClient fetches keys with blocking urllib
        signing_key = await asyncio.to_thread(
            self._jwk_client.get_signing_key_from_jwt, token,
        )
        payload = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256", "ES256"],
            issuer=self._issuer,
            options={"verify_iss": self._issuer is not None},
        )
        return claims_to_principal(payload)
