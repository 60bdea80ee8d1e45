"""Bearer-token checks for the admin console routes.

Admin users sign in with the hosted identity provider; this module only
verifies the RS256 access token it issues against the provider's JWKS.
"""

from __future__ import annotations

import base64
import json
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from abex_transport.config import settings

logger = logging.getLogger("abex_transport.auth")

CLOCK_SKEW_SECONDS = 60


class AuthError(Exception):
    def __init__(self, message: str, error: str = "invalid_token", status_code: int = 401) -> None:
        self.message = message
        self.error = error
        self.status_code = status_code
        super().__init__(message)


@dataclass(slots=True)
class AdminAuthenticator:
    issuer: str
    audience: str
    client_id: str
    jwks_url: str
    authorization_url: str
    algorithms: list[str]
    required_scope: str | None
    jwks_transport: httpx.BaseTransport | None = None

    @classmethod
    def from_settings(cls) -> AdminAuthenticator | None:
        if not settings.auth_enabled:
            logger.warning("admin_auth_disabled")
            return None

        required = {
            "oidc_issuer": settings.oidc_issuer,
            "oidc_audience": settings.oidc_audience,
            "oidc_client_id": settings.oidc_client_id,
            "oidc_jwks_url": settings.oidc_jwks_url,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise RuntimeError(f"Admin authentication is enabled but missing settings: {', '.join(missing)}")

        return cls(
            issuer=settings.oidc_issuer,
            audience=settings.oidc_audience,
            client_id=settings.oidc_client_id,
            jwks_url=settings.oidc_jwks_url,
            authorization_url=settings.oidc_authorization_url or f"{settings.oidc_issuer.rstrip('/')}/authorize",
            algorithms=settings.oidc_algorithms,
            required_scope=settings.oidc_required_scope,
        )

    def validate_authorization_header(self, authorization_header: str | None) -> dict[str, Any]:
        if not authorization_header:
            raise AuthError("Missing bearer token", error="invalid_request")

        scheme, _, token = authorization_header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise AuthError("Authorization header must be a bearer token", error="invalid_request")
        return self.validate_token(token)

    def validate_token(self, token: str) -> dict[str, Any]:
        try:
            header, claims, signature, signing_input = _split_jwt(token)
            algorithm = header.get("alg")
            if algorithm not in self.algorithms or algorithm != "RS256":
                raise AuthError(f"Unsupported signing algorithm: {algorithm}")
            key = self._signing_key(header.get("kid"))
            key.verify(signature, signing_input, padding.PKCS1v15(), hashes.SHA256())
            _check_claims(claims, issuer=self.issuer, audience=self.audience)
        except AuthError:
            raise
        except Exception as exc:
            logger.warning("admin_token_rejected error=%s", exc)
            raise AuthError("Token is invalid or expired") from exc

        if self.required_scope and self.required_scope not in _scopes(claims):
            raise AuthError(
                f"Token missing required scope: {self.required_scope}",
                error="insufficient_scope",
                status_code=403,
            )
        return claims

    def _signing_key(self, kid: str | None) -> rsa.RSAPublicKey:
        if not kid:
            raise AuthError("Token header missing 'kid'")
        with httpx.Client(timeout=5.0, transport=self.jwks_transport) as client:
            response = client.get(self.jwks_url)
            response.raise_for_status()
            jwks = response.json()
        for jwk in jwks.get("keys", []):
            if jwk.get("kid") == kid:
                if jwk.get("kty") != "RSA":
                    raise AuthError("Only RSA JWK keys are supported")
                return rsa.RSAPublicNumbers(
                    e=int.from_bytes(_b64url_decode(jwk["e"]), byteorder="big"),
                    n=int.from_bytes(_b64url_decode(jwk["n"]), byteorder="big"),
                ).public_key()
        raise AuthError("Unable to find signing key for token")

    def challenge_header(self, error: str, description: str) -> str:
        parts = [
            'Bearer realm="abex-transport-admin"',
            f'authorization_uri="{self.authorization_url}"',
            f'client_id="{self.client_id}"',
            f'error="{error}"',
            f'error_description="{description}"',
        ]
        if self.required_scope:
            parts.append(f'scope="{self.required_scope}"')
        return ", ".join(parts)


def _split_jwt(token: str) -> tuple[dict[str, Any], dict[str, Any], bytes, bytes]:
    parts = token.split(".")
    if len(parts) != 3:
        raise AuthError("Token is malformed")
    header_segment, claims_segment, signature_segment = parts
    return (
        json.loads(_b64url_decode(header_segment)),
        json.loads(_b64url_decode(claims_segment)),
        _b64url_decode(signature_segment),
        f"{header_segment}.{claims_segment}".encode("ascii"),
    )


def _check_claims(claims: dict[str, Any], issuer: str, audience: str) -> None:
    now = int(time.time())
    exp, iat = claims.get("exp"), claims.get("iat")
    if not isinstance(exp, (int, float)) or now >= int(exp):
        raise AuthError("Token is invalid or expired")
    if not isinstance(iat, (int, float)) or int(iat) > now + CLOCK_SKEW_SECONDS:
        raise AuthError("Token has invalid issue timestamp")
    if claims.get("iss") != issuer:
        raise AuthError("Token issuer mismatch")

    aud = claims.get("aud")
    audiences = {aud} if isinstance(aud, str) else set(aud) if isinstance(aud, list) else set()
    if audience not in audiences:
        raise AuthError("Token audience mismatch")


def _scopes(claims: dict[str, Any]) -> set[str]:
    scopes: set[str] = set()
    for claim in ("scope", "scp"):
        value = claims.get(claim)
        if isinstance(value, str):
            scopes.update(value.split())
        elif isinstance(value, list):
            scopes.update(value)
    return scopes


def _b64url_decode(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))
