"""
OAuth State Store

Per-provider, in-process store of outstanding anti-forgery ``state`` values.
Each provider owns exactly one store; every access goes through one lock
that also guards the secure random generator.
"""
import secrets
import string
import threading
import time
from collections import OrderedDict
from typing import Callable

import structlog

from fict.core.logging import redact_state

logger = structlog.get_logger(__name__)

# Length of the "state" parameter used to defeat CSRF hijacking.
STATE_LENGTH = 20

STATE_ALPHABET = string.ascii_letters + string.digits


class OAuthStateStore:
    """Issues single-use CSRF state tokens and checks them on callback."""

    def __init__(
        self,
        provider_name: str,
        ttl_seconds: int = 600,
        max_outstanding: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider_name = provider_name
        self.ttl_seconds = ttl_seconds
        self.max_outstanding = max_outstanding
        self._clock = clock
        self._lock = threading.Lock()
        self._rng = secrets.SystemRandom()
        # state -> issue time, oldest first
        self._valid_states: "OrderedDict[str, float]" = OrderedDict()

    def generate(self) -> str:
        """
        Generate an unguessable random string for use as a ``state`` parameter
        and remember it as valid.

        Expired states are purged first; when the store is full the oldest
        outstanding state is evicted.
        """
        with self._lock:
            now = self._clock()
            self._purge_expired_locked(now)

            state = "".join(self._rng.choice(STATE_ALPHABET) for _ in range(STATE_LENGTH))
            while state in self._valid_states:
                state = "".join(self._rng.choice(STATE_ALPHABET) for _ in range(STATE_LENGTH))

            while len(self._valid_states) >= self.max_outstanding:
                evicted, _ = self._valid_states.popitem(last=False)
                logger.warning(
                    "oauth_state_evicted",
                    provider=self.provider_name,
                    state=redact_state(evicted),
                )

            self._valid_states[state] = now

        logger.debug("oauth_state_generated", provider=self.provider_name, state=redact_state(state))
        return state

    def validate(self, candidate: str) -> bool:
        """
        Verify that ``candidate`` is an outstanding state. Discard it from the
        store if it is, so each state validates at most once.
        """
        with self._lock:
            issued_at = self._valid_states.pop(candidate, None)
            if issued_at is None:
                return False
            if self._clock() - issued_at > self.ttl_seconds:
                logger.warning(
                    "oauth_state_expired",
                    provider=self.provider_name,
                    state=redact_state(candidate),
                )
                return False
            return True

    def purge_expired(self) -> int:
        """Drop every expired state. Returns the number removed."""
        with self._lock:
            return self._purge_expired_locked(self._clock())

    def _purge_expired_locked(self, now: float) -> int:
        count = 0
        # Insertion order is issue order, so expired entries sit at the front.
        while self._valid_states:
            issued_at = next(iter(self._valid_states.values()))
            if now - issued_at <= self.ttl_seconds:
                break
            self._valid_states.popitem(last=False)
            count += 1

        if count:
            logger.info("oauth_states_cleaned", provider=self.provider_name, count=count)
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._valid_states)
