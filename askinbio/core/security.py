"""Access token inspection and PKCE helpers."""

import time
from typing import Any

from authlib.common.security import generate_token
from authlib.oauth2.rfc7636 import create_s256_code_challenge
from jose import JWTError, jwt
from pydantic import BaseModel

from askinbio.core.config import get_settings

settings = get_settings()

# Supabase signs access tokens with HS256 and the "authenticated" audience
ALGORITHM = "HS256"
AUDIENCE = "authenticated"

# Cookie lifetime for the refresh token
REFRESH_COOKIE_MAX_AGE = 60 * 60 * 24 * 30  # 30 days


class TokenClaims(BaseModel):
    """Claims read from a provider access token."""

    sub: str
    email: str | None = None
    exp: int

    def expires_in(self, now: float | None = None) -> int:
        """Seconds until expiry (negative once expired)."""
        current = time.time() if now is None else now
        return int(self.exp - current)


def decode_access_token(token: str) -> TokenClaims | None:
    """Read the claims of an access token.

    The signature is verified when a JWT secret is configured. Without one
    the claims are read as-is, which is only used to schedule refreshes;
    identity itself is always confirmed by the provider.

    Returns:
        TokenClaims, or None if the token is malformed or fails verification.
    """
    try:
        if settings.supabase_jwt_secret:
            payload: dict[str, Any] = jwt.decode(
                token,
                settings.supabase_jwt_secret,
                algorithms=[ALGORITHM],
                audience=AUDIENCE,
                options={"verify_exp": False},
            )
        else:
            payload = jwt.get_unverified_claims(token)
    except JWTError:
        return None

    sub = payload.get("sub")
    exp = payload.get("exp")
    if sub is None or exp is None:
        return None

    return TokenClaims(sub=str(sub), email=payload.get("email"), exp=int(exp))


def create_pkce_pair() -> tuple[str, str]:
    """Create a PKCE code verifier and its S256 challenge.

    Returns:
        Tuple of (code_verifier, code_challenge)
    """
    verifier = generate_token(64)
    return verifier, create_s256_code_challenge(verifier)
