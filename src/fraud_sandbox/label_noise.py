"""
Label noise injection for synthesized training data.

Real fraud labels carry annotation error: chargebacks are missed and disputed
legitimate purchases get flagged. NoiseInjector simulates that by flipping a
fraction of labels. It is meant for the training set only; the held-out set
keeps its true labels.
"""

import logging
from dataclasses import replace
from typing import List, Optional

import numpy as np

from .transaction_synthesis import Transaction

logger = logging.getLogger(__name__)

DEFAULT_NOISE_RATE = 0.03


class NoiseInjector:
    """
    Flip fraud labels at random.

    Args:
        rng: Random generator to draw from. When None, a generator seeded with
             ``seed`` is created.
        seed: Seed used only when ``rng`` is None.

    Example:
        injector = NoiseInjector(seed=1)
        flipped = injector.apply_label_noise(train_records, rate=0.03)
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def apply_label_noise(
        self, records: List[Transaction], rate: float = DEFAULT_NOISE_RATE
    ) -> int:
        """
        Flip ``is_fraud`` on each record independently with probability ``rate``.

        Transactions are immutable, so a flipped record is replaced in the
        list by a copy carrying the opposite label. The list itself is
        mutated in place.

        Args:
            records: Mutable list of transactions.
            rate: Flip probability in [0, 1].

        Returns:
            Number of labels flipped.

        Raises:
            ValueError: If ``rate`` is outside [0, 1].
        """
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"Noise rate must be within [0, 1], got {rate}")

        flipped = 0
        for idx, record in enumerate(records):
            if self.rng.random() < rate:
                records[idx] = replace(record, is_fraud=1 - record.is_fraud)
                flipped += 1

        logger.info("Flipped %d of %d labels (rate %.3f)", flipped, len(records), rate)
        return flipped
