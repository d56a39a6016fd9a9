from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from the identity provider's JWT."""

    external_id: str
    session_id: str | None = None
