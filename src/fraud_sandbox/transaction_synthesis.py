"""
Transaction synthesis module for the fraud-detection training sandbox.

This module provides the Transaction record and the TransactionSynthesizer
class, which draws labelled banking transactions from a class-conditional
generative model. Fraudulent records follow one of four overlapping
sub-patterns (large amount, card testing, night plus distance, new account)
and legitimate records follow heavy-tailed everyday spending behaviour, so the
two classes overlap the way real banking data does.

Example:
    import numpy as np
    from fraud_sandbox.transaction_synthesis import TransactionSynthesizer

    synthesizer = TransactionSynthesizer(rng=np.random.default_rng(42))
    records = synthesizer.generate(1000)
    fraud_rate = sum(r.is_fraud for r in records) / len(records)
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional

import numpy as np

logger = logging.getLogger(__name__)

# Numeric model inputs, in the fixed order used for feature matrices.
FEATURES: List[str] = [
    "amount",
    "hour",
    "day",
    "merchant",
    "distance",
    "frequency",
    "age",
    "balance",
]

LABEL = "is_fraud"

DEFAULT_FRAUD_PRIOR = 0.02
MAX_DISTANCE_KM = 500.0

LEGIT_AMOUNT_RATE = 0.015
LEGIT_DISTANCE_RATE = 0.08


@dataclass(frozen=True)
class Transaction:
    """
    A single labelled banking transaction.

    Attributes:
        amount: Transaction amount in currency units (>= 0).
        hour: Hour of day, 0-23.
        day: Day of week, 0-6.
        merchant: Merchant category id, 0-9.
        distance: Distance from home in km, capped at 500.
        frequency: Transactions per day on the account (>= 1).
        age: Account age in days (>= 1).
        balance: Account balance in currency units (>= 0).
        is_fraud: Binary fraud label (0 or 1).
    """

    amount: float
    hour: int
    day: int
    merchant: int
    distance: float
    frequency: int
    age: int
    balance: float
    is_fraud: int = 0

    def feature_vector(self) -> List[float]:
        """Return the numeric features in ``FEATURES`` order."""
        return [float(getattr(self, name)) for name in FEATURES]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "Transaction":
        """
        Build a Transaction from a mapping of raw field values.

        Accepts either ``is_fraud`` or the exported ``isFraud`` column name
        for the label; a missing label defaults to 0, which suits unlabelled
        transactions submitted for scoring.

        Args:
            values: Mapping containing every name in ``FEATURES``.

        Returns:
            A new Transaction.

        Raises:
            KeyError: If a feature is missing from ``values``.

        Example:
            tx = Transaction.from_mapping({
                "amount": 812.5, "hour": 2, "day": 5, "merchant": 3,
                "distance": 140.0, "frequency": 7, "age": 30, "balance": 2200.0,
            })
        """
        label = values.get(LABEL, values.get("isFraud", 0))
        return cls(
            amount=float(values["amount"]),
            hour=int(values["hour"]),
            day=int(values["day"]),
            merchant=int(values["merchant"]),
            distance=float(values["distance"]),
            frequency=int(values["frequency"]),
            age=int(values["age"]),
            balance=float(values["balance"]),
            is_fraud=int(label),
        )


class TransactionSynthesizer:
    """
    Generate labelled transactions from a class-conditional generative model.

    The random source is an injected ``numpy.random.Generator`` so that a
    fixed seed reproduces the same dataset.

    Args:
        rng: Random generator to draw from. When None, a generator seeded with
             ``seed`` is created.
        seed: Seed used only when ``rng`` is None.
        fraud_prior: Probability that a generated record is fraudulent.

    Example:
        synthesizer = TransactionSynthesizer(seed=7)
        train = synthesizer.generate(5000)
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        fraud_prior: float = DEFAULT_FRAUD_PRIOR,
    ) -> None:
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.fraud_prior = fraud_prior

    def generate(self, count: int) -> List[Transaction]:
        """
        Draw ``count`` independent transactions.

        Args:
            count: Number of records to generate (0 yields an empty list).

        Returns:
            List of Transaction records.

        Raises:
            ValueError: If ``count`` is negative.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")

        records = [self.generate_one() for _ in range(count)]
        if records:
            fraud_count = sum(r.is_fraud for r in records)
            logger.info(
                "Generated %d transactions (%d fraudulent, %.2f%%)",
                count, fraud_count, 100.0 * fraud_count / count,
            )
        return records

    def generate_one(self) -> Transaction:
        """Draw a single transaction."""
        is_fraud = self.rng.random() < self.fraud_prior

        if is_fraud:
            fields = self._fraud_fields()
        else:
            fields = self._legitimate_fields()

        return self._finalize(fields, is_fraud)

    # ------------------------------------------------------------------
    # Class-conditional samplers
    # ------------------------------------------------------------------
    def _fraud_fields(self) -> Dict[str, float]:
        rng = self.rng
        pattern = rng.random()

        if pattern < 0.25:
            # Large amount, overlapping legitimate big-ticket purchases
            amount = rng.uniform(400, 1600)
            hour = rng.uniform(0, 6) if rng.random() < 0.4 else rng.uniform(0, 24)
            distance = rng.uniform(30, 280)
            frequency = np.floor(rng.uniform(0, 8)) + 1
        elif pattern < 0.5:
            # Card testing: small amounts at high velocity
            amount = rng.uniform(1, 31)
            hour = rng.uniform(0, 24)
            distance = rng.uniform(0, 400)
            frequency = np.floor(rng.uniform(0, 12)) + 5
        elif pattern < 0.75:
            # Night and distance, overlapping night-shift workers
            amount = rng.uniform(100, 600)
            if rng.random() < 0.6:
                hour = rng.uniform(22, 28) % 24
            else:
                hour = rng.uniform(0, 24)
            distance = rng.uniform(50, 230)
            frequency = np.floor(rng.uniform(0, 6)) + 2
        else:
            # New account
            amount = rng.uniform(50, 450)
            hour = rng.uniform(0, 24)
            distance = rng.uniform(0, 150)
            frequency = np.floor(rng.uniform(0, 8)) + 3

        if rng.random() < 0.5:
            age = np.floor(rng.uniform(0, 80)) + 1
        else:
            age = np.floor(rng.uniform(0, 1500)) + 100
        balance = rng.uniform(500, 12500)

        return {
            "amount": amount,
            "hour": hour,
            "distance": distance,
            "frequency": frequency,
            "age": age,
            "balance": balance,
        }

    def _legitimate_fields(self) -> Dict[str, float]:
        rng = self.rng

        amount = float(np.clip(rng.exponential(1 / LEGIT_AMOUNT_RATE), 5, 2000))

        hour_draw = rng.random()
        if hour_draw < 0.6:
            hour = rng.uniform(7, 19)
        elif hour_draw < 0.85:
            hour = rng.uniform(17, 22)
        else:
            hour = rng.uniform(0, 24)

        distance = min(rng.exponential(1 / LEGIT_DISTANCE_RATE), 300.0)
        if rng.random() < 0.1:
            # Travel
            distance = rng.uniform(100, 500)

        frequency_draw = rng.random()
        if frequency_draw < 0.6:
            frequency = np.floor(rng.uniform(0, 2)) + 1
        elif frequency_draw < 0.9:
            frequency = np.floor(rng.uniform(0, 3)) + 2
        else:
            frequency = np.floor(rng.uniform(0, 6)) + 4

        if rng.random() < 0.85:
            age = np.floor(rng.uniform(0, 2200)) + 200
        else:
            age = np.floor(rng.uniform(0, 150)) + 30
        balance = rng.uniform(500, 18500)

        return {
            "amount": amount,
            "hour": hour,
            "distance": distance,
            "frequency": frequency,
            "age": age,
            "balance": balance,
        }

    def _finalize(self, fields: Dict[str, float], is_fraud: bool) -> Transaction:
        """Apply the post-processing shared by both classes."""
        day = int(np.floor(self.rng.uniform(0, 7)))
        merchant = int(np.floor(self.rng.uniform(0, 10)))

        return Transaction(
            amount=round(float(fields["amount"]), 2),
            hour=int(np.floor(fields["hour"])) % 24,
            day=day,
            merchant=merchant,
            distance=round(min(float(fields["distance"]), MAX_DISTANCE_KM), 2),
            frequency=max(1, int(np.floor(fields["frequency"]))),
            age=max(1, int(np.floor(fields["age"]))),
            balance=round(max(0.0, float(fields["balance"])), 2),
            is_fraud=1 if is_fraud else 0,
        )
