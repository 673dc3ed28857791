"""
Min-max feature normalization with write-once parameters.

FeatureNormalizer captures per-feature (min, max) pairs from a reference set
exactly once. Every later transform, whether of the training set, the
held-out set or a single transaction submitted for scoring, reuses those
exact parameters.

Example:
    from fraud_sandbox.feature_normalization import FeatureNormalizer

    normalizer = FeatureNormalizer()
    normalizer.fit(train_records)
    X_train = normalizer.transform(train_records)
    X_test = normalizer.transform(test_records)
    x_one = normalizer.transform_one(train_records[0])
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple

import numpy as np

from .errors import NotFitted
from .transaction_synthesis import FEATURES, Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizationParams:
    """Per-feature (min, max) pairs, keyed by feature name."""

    ranges: Mapping[str, Tuple[float, float]]

    def scale(self, feature: str, value: float) -> float:
        low, high = self.ranges[feature]
        span = high - low
        if span == 0:
            return 0.0
        return (value - low) / span


class FeatureNormalizer:
    """
    Fit min-max parameters once and apply them to any record set.

    Args:
        features: Feature names to normalize, in output column order.

    Example:
        normalizer = FeatureNormalizer()
        normalizer.fit(train_records)
        normalizer.fit(other_records)  # no-op, first fit wins
    """

    def __init__(self, features: Sequence[str] = FEATURES) -> None:
        self.features = list(features)
        self._params: Optional[NormalizationParams] = None

    @property
    def is_fitted(self) -> bool:
        return self._params is not None

    @property
    def params(self) -> NormalizationParams:
        if self._params is None:
            raise NotFitted("Normalization parameters have not been fitted")
        return self._params

    def fit(self, reference: Sequence[Transaction]) -> NormalizationParams:
        """
        Capture (min, max) for every feature from ``reference``.

        Calling fit again after a successful fit does nothing and returns the
        original parameters.

        Args:
            reference: Non-empty reference set, normally the training set.

        Returns:
            The fitted NormalizationParams.

        Raises:
            ValueError: If ``reference`` is empty on the first fit.
        """
        if self._params is not None:
            logger.debug("Normalizer already fitted; keeping existing parameters")
            return self._params

        if len(reference) == 0:
            raise ValueError("Cannot fit normalization parameters on an empty set")

        matrix = self._raw_matrix(reference)
        mins = matrix.min(axis=0)
        maxs = matrix.max(axis=0)
        ranges = {
            name: (float(low), float(high))
            for name, low, high in zip(self.features, mins, maxs)
        }
        self._params = NormalizationParams(ranges=MappingProxyType(ranges))
        logger.info("Fitted normalization parameters on %d records", len(reference))
        return self._params

    def transform(self, records: Sequence[Transaction]) -> np.ndarray:
        """
        Normalize a record set with the fitted parameters.

        Args:
            records: Records to transform; the originals are not modified.

        Returns:
            Float array of shape ``(len(records), len(features))``.

        Raises:
            NotFitted: If ``fit`` was never called.
        """
        params = self.params
        matrix = self._raw_matrix(records)
        if matrix.size == 0:
            return matrix.reshape(0, len(self.features))

        lows = np.array([params.ranges[f][0] for f in self.features])
        highs = np.array([params.ranges[f][1] for f in self.features])
        spans = highs - lows

        scaled = np.zeros_like(matrix)
        nonzero = spans != 0
        scaled[:, nonzero] = (matrix[:, nonzero] - lows[nonzero]) / spans[nonzero]
        return scaled

    def transform_one(self, record: Transaction) -> np.ndarray:
        """
        Normalize a single record.

        Returns:
            Float array of shape ``(len(features),)``.

        Raises:
            NotFitted: If ``fit`` was never called.
        """
        params = self.params
        return np.array(
            [params.scale(name, float(getattr(record, name))) for name in self.features],
            dtype=float,
        )

    @staticmethod
    def labels(records: Sequence[Transaction]) -> np.ndarray:
        """Return the ``is_fraud`` labels as a float array."""
        return np.array([r.is_fraud for r in records], dtype=float)

    def _raw_matrix(self, records: Sequence[Transaction]) -> np.ndarray:
        return np.array(
            [[float(getattr(r, name)) for name in self.features] for r in records],
            dtype=float,
        ).reshape(len(records), len(self.features))
