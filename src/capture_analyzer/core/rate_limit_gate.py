"""Persisted quota gate for upstreams with a hard call budget."""

import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Mapping, Optional

from capture_analyzer.core.entities import RateLimitState, RateLimitStatus, as_utc
from capture_analyzer.core.interfaces import RateLimitStore

REMAINING_HEADER = "x-rate-limit-remaining"
RESET_HEADER = "x-rate-limit-reset"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RateLimitGate:
    """Decide whether a gated source may be called right now.

    State lives in a RateLimitStore, one record per resource key, and is
    re-read once the cached copy is older than the staleness window. Every
    mutation is written back before the method returns. Concurrent writers
    are last-writer-wins; the upstream headers correct any drift on the
    next successful call.
    """

    def __init__(
        self,
        store: RateLimitStore,
        staleness_seconds: float = 60,
        default_window_minutes: float = 15,
        default_quotas: Optional[Mapping[str, int]] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.staleness = timedelta(seconds=staleness_seconds)
        self.default_window = timedelta(minutes=default_window_minutes)
        self.default_quotas = dict(default_quotas or {})
        self.clock = clock
        self._states: dict[str, RateLimitState] = {}
        self._loaded_at: dict[str, datetime] = {}

    def should_skip(self, key: str) -> bool:
        """Return True when the quota for key is exhausted and not yet reset."""
        state = self._state(key)

        if state.remaining_requests is not None and state.remaining_requests > 0:
            return False

        if state.reset_time is None:
            return False

        if self._now() > state.reset_time:
            # Window rolled over
            state.remaining_requests = self.default_quotas.get(key, 1)
            self._persist(key, state)
            return False

        return True

    def update_from_response(
        self,
        key: str,
        remaining: Optional[int] = None,
        reset_epoch_seconds: Optional[float] = None,
    ) -> None:
        """Record quota values reported by the upstream."""
        state = self._state(key)

        if remaining is not None:
            state.remaining_requests = remaining
        if reset_epoch_seconds is not None:
            state.reset_time = datetime.fromtimestamp(reset_epoch_seconds, tz=timezone.utc)

        state.last_checked = self._now()
        self._persist(key, state)

    def update_from_headers(self, key: str, headers: Mapping[str, str]) -> None:
        """Record quota values from x-rate-limit-* response headers."""
        remaining = _parse_number(headers.get(REMAINING_HEADER), int)
        reset = _parse_number(headers.get(RESET_HEADER), float)

        if remaining is None and reset is None:
            return

        self.update_from_response(key, remaining=remaining, reset_epoch_seconds=reset)

    def mark_rate_limited(self, key: str, reset_time: Optional[datetime] = None) -> None:
        """Force the gate shut until reset_time (default: one window from now)."""
        state = self._state(key)
        now = self._now()

        state.remaining_requests = 0
        state.reset_time = as_utc(reset_time) or now + self.default_window
        state.last_checked = now
        self._persist(key, state)

    def get_status(self, key: str) -> RateLimitStatus:
        """Read-only snapshot of the gate for display."""
        state = self._state(key)
        now = self._now()

        has_info = state.remaining_requests is not None or state.reset_time is not None
        has_quota = state.remaining_requests is not None and state.remaining_requests > 0
        is_limited = not has_quota and state.reset_time is not None and now <= state.reset_time

        minutes = 0
        if state.reset_time is not None:
            seconds_left = (state.reset_time - now).total_seconds()
            minutes = max(0, math.ceil(seconds_left / 60))

        if not has_info:
            message = "No rate limit information yet"
        elif is_limited:
            reset_string = state.reset_time.strftime("%H:%M:%S UTC")
            message = f"Rate limited. Resets in {minutes} minutes ({reset_string})"
        elif state.remaining_requests is None:
            message = "Quota available"
        else:
            message = f"{state.remaining_requests} requests remaining"

        return RateLimitStatus(
            resource_key=key,
            has_info=has_info,
            is_rate_limited=is_limited,
            remaining_requests=state.remaining_requests,
            reset_time=state.reset_time,
            minutes_until_reset=minutes,
            message=message,
        )

    def _state(self, key: str) -> RateLimitState:
        """Cached state for key, reloaded from the store when stale."""
        now = self._now()
        loaded_at = self._loaded_at.get(key)

        if key not in self._states or loaded_at is None or now - loaded_at > self.staleness:
            state = self.store.load(key)
            # Stores may hand back naive timestamps
            state.reset_time = as_utc(state.reset_time)
            state.last_checked = as_utc(state.last_checked)
            self._states[key] = state
            self._loaded_at[key] = now

        return self._states[key]

    def _now(self) -> datetime:
        return as_utc(self.clock())

    def _persist(self, key: str, state: RateLimitState) -> None:
        self.store.save(key, state)
        self._states[key] = state
        self._loaded_at[key] = self._now()


def _parse_number(value: Optional[str], kind: type):
    if value is None:
        return None
    try:
        return kind(value)
    except (TypeError, ValueError):
        return None
