# streamlearn/data/reservoir.py
from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np


class ReservoirSampler:
    """
    Fixed-capacity uniform sample over a stream of unknown length
    (Algorithm R). Seeded, so a replayed stream yields the same sample.
    """

    def __init__(self, capacity: int, seed: int = 1):
        if capacity < 1:
            raise ValueError(f"Reservoir capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.seed = seed
        self.reset()

    def reset(self) -> None:
        self._rng = np.random.default_rng(self.seed)
        self._sample: List[Sequence] = []
        self.seen = 0

    def __len__(self) -> int:
        return len(self._sample)

    def process_row(self, row: Sequence) -> None:
        self.seen += 1
        if len(self._sample) < self.capacity:
            self._sample.append(row)
            return

        j = int(self._rng.integers(0, self.seen))
        if j < self.capacity:
            self._sample[j] = row

    def sample(self) -> Optional[List[Sequence]]:
        """
        Current sample, or None if no row has been seen.
        """
        if self.seen == 0:
            return None
        return list(self._sample)
