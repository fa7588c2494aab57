"""Obfuscated, recyclable document IDs.

A per-collection counter is scrambled with a 32-bit xorshift and written as
six base-64 digits, so public IDs are short, non-sequential and still
invertible. `IdAllocator` tracks the highest counter in use plus the gaps
below it that may be handed out again.
"""

from __future__ import annotations

import bisect
import logging
from typing import List, Optional, Tuple

from labdb.core.exceptions import IdFormatError, IdRangeError

logger = logging.getLogger(__name__)

ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz_-"
ID_LENGTH = 6
MAX_COUNTER = 0xFFFFFFFF

_MASK32 = 0xFFFFFFFF
_DIGITS = {symbol: index for index, symbol in enumerate(ALPHABET)}


def scramble(n: int) -> str:
    """Scramble a counter in [1, 0xFFFFFFFF] into a 6-character token."""

    if isinstance(n, bool) or not isinstance(n, int) or n <= 0 or n > MAX_COUNTER:
        raise IdRangeError(f"ID marshalling failed. {n!r} not in range (0, 0xFFFF_FFFF]")

    x = n & _MASK32
    x ^= x >> 13
    x ^= (x << 17) & _MASK32
    x ^= x >> 5

    digits = []
    for _ in range(ID_LENGTH):
        digits.append(ALPHABET[x & 0x3F])
        x >>= 6
    return "".join(reversed(digits))


def unscramble(token: str) -> int:
    """Recover the counter encoded by `scramble`."""

    if not isinstance(token, str) or len(token) != ID_LENGTH:
        raise IdFormatError(f"ID unmarshalling failed. {token!r} is not a 6-character base64{{'_-'}} string")

    x = 0
    for symbol in token:
        value = _DIGITS.get(symbol)
        if value is None:
            raise IdFormatError(f"ID unmarshalling failed. {token!r} is not a 6-character base64{{'_-'}} string")
        x = (x << 6) + value
    x &= _MASK32

    # undo x ^= x >> 5
    mask, r = 0xF8000000, 0
    while mask:
        r |= ((r >> 5) ^ x) & mask
        mask >>= 5
    x = r

    # undo x ^= x << 17
    mask, r = 0x0001FFFF, 0
    while mask:
        r |= (((r << 17) & _MASK32) ^ x) & mask
        mask = (mask << 17) & _MASK32
    x = r

    # undo x ^= x >> 13
    mask, r = 0xFFF80000, 0
    while mask:
        r |= ((r >> 13) ^ x) & mask
        mask >>= 13
    return r


class IdAllocator:
    """Allocates `prefix + scramble(n)` IDs for one collection.

    Free numbers below the high-water mark are kept as disjoint inclusive
    `(lo, hi)` ranges in ascending order, so a single large hand-picked ID
    costs one range rather than one entry per skipped number.
    """

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self.max_numbered_id = 0
        self.free_ranges: List[Tuple[int, int]] = []

    @property
    def free_count(self) -> int:
        return sum(hi - lo + 1 for lo, hi in self.free_ranges)

    def is_free(self, n: int) -> bool:
        index = bisect.bisect_right(self.free_ranges, (n, MAX_COUNTER + 1)) - 1
        return index >= 0 and self.free_ranges[index][1] >= n

    def owns(self, doc_id: str) -> bool:
        return doc_id.startswith(self.prefix)

    def number_of(self, doc_id: str) -> Optional[int]:
        """Return the counter behind `doc_id`, or None if it is not one of ours."""

        if not self.owns(doc_id):
            return None
        try:
            n = unscramble(doc_id[len(self.prefix):])
        except IdFormatError:
            return None
        return n or None

    def _claim(self, n: int) -> None:
        index = bisect.bisect_right(self.free_ranges, (n, MAX_COUNTER + 1)) - 1
        if index < 0:
            return
        lo, hi = self.free_ranges[index]
        if n > hi:
            return
        split = []
        if lo < n:
            split.append((lo, n - 1))
        if n < hi:
            split.append((n + 1, hi))
        self.free_ranges[index:index + 1] = split

    def observe(self, doc_id: str) -> None:
        """Account for an ID already present in the collection."""

        n = self.number_of(doc_id)
        if n is None:
            return
        if n < self.max_numbered_id:
            self._claim(n)
        elif n > self.max_numbered_id:
            if n > self.max_numbered_id + 1:
                self.free_ranges.append((self.max_numbered_id + 1, n - 1))
            self.max_numbered_id = n

    def release(self, doc_id: str) -> None:
        """Return an allocated but unused ID to the free pool."""

        n = self.number_of(doc_id)
        if n is None or n > self.max_numbered_id or self.is_free(n):
            return
        index = bisect.bisect_left(self.free_ranges, (n, n))
        lo, hi = n, n
        if index < len(self.free_ranges) and self.free_ranges[index][0] == n + 1:
            hi = self.free_ranges.pop(index)[1]
        if index > 0 and self.free_ranges[index - 1][1] == n - 1:
            index -= 1
            lo = self.free_ranges.pop(index)[0]
        self.free_ranges.insert(index, (lo, hi))

    def allocate(self) -> str:
        if self.free_ranges:
            lo, hi = self.free_ranges[-1]
            n = hi
            if lo == hi:
                self.free_ranges.pop()
            else:
                self.free_ranges[-1] = (lo, hi - 1)
        else:
            n = self.max_numbered_id + 1
            self.max_numbered_id = n
        return f"{self.prefix}{scramble(n)}"
