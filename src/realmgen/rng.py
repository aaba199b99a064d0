"""Seeded pseudo-random number generation.

Every stage of the pipeline draws from its own :class:`SeededRandom`
built by :func:`stage_rng`, so stages stay uncorrelated and can be
exercised in isolation.  The state update only uses 32-bit integer
arithmetic, which keeps sequences identical across platforms.
"""

from __future__ import annotations

import math
import secrets
import string
from typing import MutableSequence, Sequence, TypeVar

T = TypeVar("T")

MASK32 = 0xFFFFFFFF
_TWO_POW_32 = 4294967296.0

SEED_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply."""
    return (a * b) & MASK32


def _code_units(text: str) -> list[int]:
    """UTF-16 code units of *text*, so non-BMP characters hash consistently."""
    raw = text.encode("utf-16-le", errors="surrogatepass")
    return [raw[i] | (raw[i + 1] << 8) for i in range(0, len(raw), 2)]


class SeededRandom:
    """Deterministic xorshift128+ style generator seeded from a string."""

    def __init__(self, seed: str) -> None:
        self.seed = seed

        h1 = 0xDEADBEEF
        h2 = 0x41C6CE57
        for ch in _code_units(seed):
            h1 = _imul(h1 ^ ch, 0x85EBCA77)
            h2 = _imul(h2 ^ ch, 0xC2B2AE3D)

        h1 ^= _imul(h1 ^ (h2 >> 15), 0x735A2D97)
        h2 ^= _imul(h2 ^ (h1 >> 15), 0xCAF649A9)
        h1 ^= h2 >> 16
        h2 ^= h1 >> 16

        self._s0 = h1 & MASK32
        self._s1 = h2 & MASK32

    def next(self) -> float:
        """Return the next value in [0, 1)."""
        s1 = self._s0
        s0 = self._s1
        self._s0 = s0
        s1 ^= (s1 << 23) & MASK32
        s1 ^= s1 >> 17
        s1 ^= s0
        s1 ^= s0 >> 26
        self._s1 = s1 & MASK32
        return ((self._s0 + self._s1) & MASK32) / _TWO_POW_32

    def range(self, lo: float, hi: float) -> float:
        """Uniform float in [lo, hi)."""
        return lo + self.next() * (hi - lo)

    def int(self, lo: int, hi: int) -> int:
        """Uniform integer in [lo, hi], both ends inclusive."""
        return math.floor(self.range(lo, hi + 1))

    def pick(self, items: Sequence[T]) -> T:
        """Pick one element of *items*."""
        return items[self.int(0, len(items) - 1)]

    def shuffle(self, items: MutableSequence[T]) -> MutableSequence[T]:
        """Fisher-Yates shuffle *items* in place and return it."""
        for i in range(len(items) - 1, 0, -1):
            j = self.int(0, i)
            items[i], items[j] = items[j], items[i]
        return items

    def token(self) -> str:
        """Random identifier shaped like a version-4 UUID."""
        out = []
        for c in "xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx":
            if c not in "xy":
                out.append(c)
                continue
            r = int(self.next() * 16)
            v = r if c == "x" else (r & 0x3) | 0x8
            out.append(format(v, "x"))
        return "".join(out)


def stage_rng(master_seed: str, stage_tag: str) -> SeededRandom:
    """Build the generator for one pipeline stage.

    >>> stage_rng("alpha", "erosion").seed
    'alpha_erosion'
    """
    return SeededRandom(f"{master_seed}_{stage_tag}")


def generate_seed(length: int = 12) -> str:
    """Random alphanumeric seed for runs where the caller supplied none."""
    return "".join(secrets.choice(SEED_ALPHABET) for _ in range(length))
