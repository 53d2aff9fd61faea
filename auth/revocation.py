"""
auth/revocation.py -- In-memory revocation overlay for stateless session tokens.

Tokens verify themselves, so logout cannot delete a server-side session.
RevocationRegistry records the fingerprint of each logged-out token together
with the token's own expiry. Once that expiry passes the token is invalid
anyway, so the entry is dropped:

  - is_revoked() treats an expired entry as absent and removes it on the spot.
  - revoke() sweeps opportunistically before inserting.
  - sweep() removes everything expired; api/main.py runs it on a timer.

Correctness never depends on when a sweep runs. Memory is bounded by the
number of revoked tokens that are still inside their lifetime.

Thread safety: FastAPI runs sync handlers in a thread pool, so revoke() and
is_revoked() interleave. Every access to the mapping holds one lock; each
operation is short and never does I/O under it.

Layer rule: stdlib only.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time

logger = logging.getLogger("sessionguard.auth")


def token_fingerprint(token_id: str) -> str:
    """Return SHA-256 hex of a verified token's jti claim.

    The key comes from the signed payload, never from the token text: the
    base64url signature segment has several spellings that verify alike.
    """
    return hashlib.sha256(token_id.encode("utf-8")).hexdigest()


class RevocationRegistry:
    """Thread-safe mapping of token fingerprint -> expiry (epoch seconds).

    Usage:
        registry = RevocationRegistry()
        registry.revoke(token_fingerprint(claims.token_id), claims.expires_at)
        registry.is_revoked(token_fingerprint(claims.token_id))  # True until expiry
        registry.sweep()                                         # returns rows removed
    """

    def __init__(self) -> None:
        self._entries: dict[str, float] = {}
        self._lock = threading.Lock()

    def revoke(self, fingerprint: str, expires_at: float) -> None:
        """Record a revoked token. Idempotent; already-expired tokens are not stored."""
        now = time.time()
        with self._lock:
            self._sweep_locked(now)
            if expires_at <= now:
                return
            self._entries.setdefault(fingerprint, expires_at)

    def is_revoked(self, fingerprint: str) -> bool:
        """True if fingerprint is recorded and its token has not yet expired."""
        now = time.time()
        with self._lock:
            expires_at = self._entries.get(fingerprint)
            if expires_at is None:
                return False
            if expires_at <= now:
                del self._entries[fingerprint]
                return False
            return True

    def sweep(self) -> int:
        """Delete all entries whose token has expired. Returns number removed."""
        with self._lock:
            removed = self._sweep_locked(time.time())
        if removed:
            logger.info("Revocation sweep removed %d expired entries", removed)
        return removed

    def live_count(self) -> int:
        with self._lock:
            return len(self._entries)

    def _sweep_locked(self, now: float) -> int:
        expired = [fp for fp, expires_at in self._entries.items() if expires_at <= now]
        for fp in expired:
            del self._entries[fp]
        return len(expired)
