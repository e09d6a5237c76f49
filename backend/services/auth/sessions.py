"""Signed bearer tokens proving a prior successful login."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from core import Settings, UnauthorizedError, decode_token, encode_token

ACCESS_TOKEN_TYPE = "access"


@dataclass(frozen=True, slots=True)
class SessionTokenIssuer:
    """Issues and verifies session tokens. Built once at startup and shared."""

    secret_key: str
    algorithm: str = "HS256"
    ttl: timedelta = timedelta(hours=1)

    @classmethod
    def from_settings(cls, settings: Settings) -> SessionTokenIssuer:
        return cls(
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            ttl=timedelta(minutes=settings.access_token_expire_minutes),
        )

    def issue(self, user_id: str) -> str:
        return encode_token(
            {"sub": user_id, "type": ACCESS_TOKEN_TYPE},
            secret_key=self.secret_key,
            algorithm=self.algorithm,
            expires_delta=self.ttl,
        )

    def verify(self, token: str | None) -> str:
        # Missing, malformed, forged and expired tokens are indistinguishable.
        if not token:
            raise UnauthorizedError()
        try:
            payload = decode_token(token, secret_key=self.secret_key, algorithm=self.algorithm)
        except ValueError as exc:
            raise UnauthorizedError() from exc
        subject = payload.get("sub")
        if payload.get("type") != ACCESS_TOKEN_TYPE or not isinstance(subject, str) or not subject:
            raise UnauthorizedError()
        return subject
