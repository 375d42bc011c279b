"""
Tests for the per-provider CSRF state store.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest

from fict.services.auth.oauth.state_store import STATE_ALPHABET, STATE_LENGTH, OAuthStateStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestOAuthStateStore:
    """Test state generation and single-use validation."""

    @pytest.fixture
    def store(self):
        return OAuthStateStore("github")

    def test_generated_state_shape(self, store):
        state = store.generate()

        assert len(state) == STATE_LENGTH
        assert all(ch in STATE_ALPHABET for ch in state)
        assert len(store) == 1

    def test_state_is_single_use(self, store):
        state = store.generate()

        assert store.validate(state) is True
        assert store.validate(state) is False
        assert store.validate(state) is False
        assert len(store) == 0

    def test_unknown_state_rejected_without_side_effects(self, store):
        issued = store.generate()

        assert store.validate("x" * STATE_LENGTH) is False
        assert store.validate("") is False
        assert len(store) == 1
        assert store.validate(issued) is True

    def test_states_do_not_collide(self, store):
        states = {store.generate() for _ in range(10000)}

        assert len(states) == 10000

    def test_stores_are_independent(self):
        github = OAuthStateStore("github")
        google = OAuthStateStore("google")
        state = github.generate()

        assert google.validate(state) is False
        assert github.validate(state) is True

    def test_expired_state_rejected(self):
        clock = FakeClock()
        store = OAuthStateStore("github", ttl_seconds=600, clock=clock)
        state = store.generate()

        clock.advance(601)

        assert store.validate(state) is False
        assert len(store) == 0

    def test_state_valid_within_ttl(self):
        clock = FakeClock()
        store = OAuthStateStore("github", ttl_seconds=600, clock=clock)
        state = store.generate()

        clock.advance(599)

        assert store.validate(state) is True

    def test_generate_purges_expired_states(self):
        clock = FakeClock()
        store = OAuthStateStore("github", ttl_seconds=60, clock=clock)
        store.generate()
        store.generate()
        clock.advance(61)

        fresh = store.generate()

        assert len(store) == 1
        assert store.validate(fresh) is True

    def test_purge_expired_counts_removed(self):
        clock = FakeClock()
        store = OAuthStateStore("github", ttl_seconds=60, clock=clock)
        store.generate()
        clock.advance(30)
        kept = store.generate()
        clock.advance(31)

        assert store.purge_expired() == 1
        assert store.validate(kept) is True

    def test_oldest_state_evicted_at_capacity(self):
        store = OAuthStateStore("github", max_outstanding=3)
        first = store.generate()
        second = store.generate()
        third = store.generate()

        fourth = store.generate()

        assert len(store) == 3
        assert store.validate(first) is False
        assert store.validate(second) is True
        assert store.validate(third) is True
        assert store.validate(fourth) is True


class TestOAuthStateStoreConcurrency:
    """The store is shared by concurrent request workers."""

    def test_concurrent_generate_and_validate(self):
        store = OAuthStateStore("github")

        with ThreadPoolExecutor(max_workers=8) as pool:
            batches = list(pool.map(lambda _: [store.generate() for _ in range(250)], range(8)))

        states = [state for batch in batches for state in batch]
        assert len(set(states)) == len(states) == 2000
        assert len(store) == 2000

        # Every state is validated twice at once; exactly one attempt may win.
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(store.validate, states + states))

        assert sum(results) == 2000
        assert len(store) == 0
