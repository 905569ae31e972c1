"""
Sortable identifier generation.

Identifiers use the ULID layout: 10 Crockford base32 characters encoding a
millisecond timestamp, followed by 16 characters (80 bits) of randomness.
Their textual order equals their chronological order, which lets one ordered
key space serve both as an insertion log and as a schedule of future
visibility times.
"""

import secrets
import time
from collections.abc import Callable

from msgqueue.constants import (
    ID_LENGTH,
    MAX_RANDOM,
    MAX_TIME_MS,
    RANDOM_LENGTH,
    TIME_LENGTH,
)

ENCODING = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_DECODING = {char: index for index, char in enumerate(ENCODING)}


def _encode(value: int, length: int) -> str:
    chars = []
    for _ in range(length):
        value, remainder = divmod(value, 32)
        chars.append(ENCODING[remainder])
    return "".join(reversed(chars))


def encode_time(ms: int, length: int = TIME_LENGTH) -> str:
    """
    Encode a millisecond timestamp as a sortable prefix.

    Used on its own to build range-scan bounds without generating a full ID.

    Args:
        ms: Milliseconds since the Unix epoch.
        length: Number of base32 characters to emit.

    Returns:
        The encoded timestamp.

    Raises:
        ValueError: If the timestamp does not fit in 48 bits.
    """
    if not isinstance(ms, int) or isinstance(ms, bool):
        raise ValueError(f"Timestamp must be an integer, got {ms!r}")
    if ms < 0 or ms > MAX_TIME_MS:
        raise ValueError(f"Timestamp {ms} is outside 0..{MAX_TIME_MS}")
    return _encode(ms, length)


def decode_time(identifier: str) -> int:
    """
    Decode the millisecond timestamp carried by an identifier.

    Args:
        identifier: A full identifier or at least its time prefix.

    Returns:
        Milliseconds since the Unix epoch.

    Raises:
        ValueError: If the identifier is malformed.
    """
    if len(identifier) < TIME_LENGTH:
        raise ValueError(f"Identifier {identifier!r} is too short")

    value = 0
    for char in identifier[:TIME_LENGTH]:
        digit = _DECODING.get(char)
        if digit is None:
            raise ValueError(f"Invalid character {char!r} in {identifier!r}")
        value = value * 32 + digit

    if value > MAX_TIME_MS:
        raise ValueError(f"Identifier {identifier!r} encodes an invalid time")
    return value


def is_sortable_id(identifier: str) -> bool:
    """Check whether a string has the shape of a generated identifier."""
    return len(identifier) == ID_LENGTH and all(c in _DECODING for c in identifier)


def _system_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class SortableIdGenerator:
    """
    Monotonic identifier factory.

    Two identifiers generated for the same millisecond compare in call order:
    the second reuses the first one's random component plus one. The clock
    used for ``now()`` never moves backwards, so identifiers generated without
    an explicit time keep increasing even if the wall clock is adjusted.

    An explicit ``at_ms`` (used to schedule a lease's next-visible time) may
    lie in the future; it does not disturb the ordering of identifiers
    generated for the present.
    """

    def __init__(
        self,
        clock: Callable[[], int] | None = None,
        randbits: Callable[[int], int] | None = None,
    ):
        """
        Initialize the generator.

        Args:
            clock: Returns the current time in milliseconds. Defaults to the
                system clock.
            randbits: Returns a random integer with the given number of bits.
                Defaults to ``secrets.randbits``.
        """
        self._clock = clock or _system_clock_ms
        self._randbits = randbits or secrets.randbits
        self._last_now = 0
        # timestamp -> last random component issued for it
        self._issued: dict[int, int] = {}

    def now(self) -> int:
        """Current time in milliseconds, clamped to never go backwards."""
        current = self._clock()
        if current < self._last_now:
            return self._last_now
        self._last_now = current
        return current

    def next(self, at_ms: int | None = None) -> str:
        """
        Generate the next identifier.

        Args:
            at_ms: Timestamp to encode. Defaults to ``now()``.

        Returns:
            A 26 character identifier greater than every identifier previously
            issued with the same timestamp.

        Raises:
            ValueError: If ``at_ms`` does not fit in 48 bits.
            OverflowError: If the random component for this millisecond is
                exhausted.
        """
        timestamp = self.now() if at_ms is None else at_ms
        prefix = encode_time(timestamp)

        previous = self._issued.get(timestamp)
        if previous is None:
            self._prune()
            random = self._randbits(80)
        else:
            random = previous + 1
            if random > MAX_RANDOM:
                raise OverflowError(f"Random component exhausted for {timestamp}")

        self._issued[timestamp] = random
        return prefix + _encode(random, RANDOM_LENGTH)

    def _prune(self) -> None:
        """Forget timestamps that ``now()`` can no longer return."""
        stale = [ts for ts in self._issued if ts < self._last_now]
        for ts in stale:
            del self._issued[ts]
