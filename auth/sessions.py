"""
auth/sessions.py -- Session verification pipeline.

SessionVerifier joins the stateless token check with the revocation overlay:

  1. TokenIssuer.verify_signature_and_expiry()  -> Malformed / Expired
  2. RevocationRegistry.is_revoked(fingerprint) -> Revoked
  3. return Claims

Order matters: the registry is only consulted for tokens whose signature is
valid, so attacker-controlled strings never become lookup keys. revoke()
applies the same rule on the write side.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from auth.errors import ExpiredTokenError, MalformedTokenError, RevokedTokenError
from auth.models import Claims
from auth.revocation import RevocationRegistry, token_fingerprint
from auth.tokens import TokenIssuer

logger = logging.getLogger("sessionguard.auth")


class SessionVerifier:
    def __init__(self, issuer: TokenIssuer, registry: RevocationRegistry) -> None:
        self.issuer = issuer
        self.registry = registry

    def verify(self, token: str) -> Claims:
        """Return the token's claims, or raise Malformed/Expired/Revoked."""
        claims = self.issuer.verify_signature_and_expiry(token)
        if self.registry.is_revoked(token_fingerprint(claims.token_id)):
            raise RevokedTokenError("Session has been logged out.")
        return claims

    def revoke(self, token: str) -> bool:
        """Revoke a presented token until its natural expiry.

        Returns True if the token is (now or already) recorded as revoked,
        False if there was nothing to revoke -- the token does not verify or
        has already expired. Never raises for a bad token; logout must
        always succeed from the caller's point of view.
        """
        try:
            claims = self.issuer.verify_signature_and_expiry(token)
        except (MalformedTokenError, ExpiredTokenError) as exc:
            logger.info("Logout with unusable token ignored (%s)", exc.kind.value)
            return False
        self.registry.revoke(token_fingerprint(claims.token_id), claims.expires_at)
        return True
