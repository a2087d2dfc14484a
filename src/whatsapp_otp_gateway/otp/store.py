"""In-memory OTP store with expiry."""

from __future__ import annotations

import enum
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# OTP validity period in seconds
OTP_TTL_SECONDS = 300.0  # 5 minutes


class VerifyResult(enum.Enum):
    """Outcome of checking a candidate code."""

    NOT_FOUND = "not_found"
    MISMATCH = "mismatch"
    SUCCESS = "success"


@dataclass(frozen=True)
class OtpRecord:
    recipient: str
    code: str
    created_at: float


class OtpStore:
    """Maps ``recipient → OtpRecord``, one live record per recipient.

    Expired entries are purged lazily on access, and every issue sweeps
    the whole map through :meth:`purge_expired`.  The clock is injectable
    so expiry can be exercised without sleeping.
    """

    def __init__(
        self,
        ttl_seconds: float = OTP_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._store: dict[str, OtpRecord] = {}

    def issue(self, recipient: str) -> str:
        """Generate and store a 6-digit OTP for *recipient*, replacing any prior one."""
        self.purge_expired()
        code = str(100000 + secrets.randbelow(900000))
        self._store[recipient] = OtpRecord(recipient, code, self._clock())
        logger.debug("OTP issued for %s", recipient)
        return code

    def verify(self, recipient: str, candidate: str) -> VerifyResult:
        """Check *candidate* against the live record for *recipient*.

        A matching code is consumed; a mismatch leaves the record in place.
        """
        record = self._live_record(recipient)
        if record is None:
            return VerifyResult.NOT_FOUND
        if candidate != record.code:
            return VerifyResult.MISMATCH
        self._store.pop(recipient, None)
        return VerifyResult.SUCCESS

    def purge_expired(self) -> int:
        """Drop every expired record and return how many were removed."""
        now = self._clock()
        expired = [r for r, rec in self._store.items() if self._is_expired(rec, now)]
        for recipient in expired:
            del self._store[recipient]
        if expired:
            logger.debug("Purged %d expired OTP(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._store)

    # ── Private helpers ──────────────────────────────────

    def _live_record(self, recipient: str) -> OtpRecord | None:
        record = self._store.get(recipient)
        if record is None:
            return None
        if self._is_expired(record, self._clock()):
            self._store.pop(recipient, None)
            logger.info("OTP expired for %s", recipient)
            return None
        return record

    def _is_expired(self, record: OtpRecord, now: float) -> bool:
        return now - record.created_at >= self._ttl
