from __future__ import annotations

import hashlib
import random
import secrets
from dataclasses import dataclass


try:  # optional dependency
    import numpy as _np  # type: ignore
except Exception:  # pragma: no cover - optional
    _np = None


@dataclass
class RandomSource:
    engine: str

    def randint(self, a: int, b: int) -> int:
        """Uniform integer in [a, b], both ends inclusive."""
        raise NotImplementedError


class PyRandomSource(RandomSource):
    def __init__(self, seed: int):
        super().__init__(engine="py_random")
        self._rng = random.Random(seed)

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)


class NumpyPCG64Source(RandomSource):  # pragma: no cover - covered when numpy present
    def __init__(self, seed: int):
        if _np is None:
            raise RuntimeError("numpy is not installed; install quiz-bingo[pcg]")
        super().__init__(engine="numpy_pcg64")
        self._rng = _np.random.Generator(_np.random.PCG64(seed))

    def randint(self, a: int, b: int) -> int:
        return int(self._rng.integers(low=a, high=b + 1))


def create_rng(engine: str, seed: int) -> RandomSource:
    engine = (engine or "py_random").strip().lower()
    if engine == "py_random":
        return PyRandomSource(seed)
    if engine == "numpy_pcg64":
        return NumpyPCG64Source(seed)
    raise ValueError(f"Unsupported RNG engine: {engine}")


def fresh_seed() -> int:
    """Random 63-bit seed for runs where the operator gave none."""
    return secrets.randbits(63)


def derive_seed(base_seed: int, index: int, purpose: str) -> int:
    """Derive a follow-up seed (e.g. the n-th reshuffle) from a run's base seed.

    Returns a 63-bit positive integer suitable for seeding common RNGs.
    """
    s = f"{base_seed}|{index}|{purpose}".encode("utf-8")
    digest = hashlib.sha256(s).digest()
    # first 8 bytes, masked to 63 bits
    return int.from_bytes(digest[:8], byteorder="big") & ((1 << 63) - 1)
