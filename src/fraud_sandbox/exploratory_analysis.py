"""
Exploratory analysis module for synthesized transaction data.

This module provides the AnalyticsEngine class: read-only descriptive
statistics, range-conditioned fraud rates, the five named fraud insights and
the aggregate arrays a presentation layer needs to draw its charts. Nothing
here renders or mutates; every method takes a record set and returns plain
values.

Example:
    from fraud_sandbox.exploratory_analysis import AnalyticsEngine

    engine = AnalyticsEngine()
    summary = engine.summary(train_records)
    per_class = engine.class_stats(train_records)
    insights = engine.insights(train_records)
    night_ratio = insights.night_to_day_ratio
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from .transaction_synthesis import FEATURES, LABEL, Transaction

# Day and merchant are category ids, so their moments carry no meaning.
STATS_FEATURES: List[str] = ["amount", "hour", "distance", "frequency", "age", "balance"]

# Chart bucket edges. The last bucket of each rate list is closed with a
# generous upper bound.
AMOUNT_COUNT_EDGES: List[float] = [0, 50, 100, 200, 400, 800, float("inf")]
AMOUNT_RATE_EDGES: List[float] = [0, 100, 200, 400, 600, 10000]
DISTANCE_RATE_EDGES: List[float] = [0, 10, 30, 60, 100, 1000]
FREQUENCY_RATE_EDGES: List[float] = [1, 3, 5, 8, 11, 100]

RecordSet = Union[Sequence[Transaction], pd.DataFrame]


@dataclass(frozen=True)
class FeatureStats:
    mean: float
    std: float


@dataclass(frozen=True)
class Insights:
    """
    The five exploratory fraud insights.

    Ratios are None when either side of the ratio is zero, because a ratio
    against an empty or fraud-free bucket says nothing useful.
    """

    night_fraud_rate: float
    day_fraud_rate: float
    night_to_day_ratio: Optional[float]
    high_amount_fraud_rate: float
    low_amount_fraud_rate: float
    fraud_mean_distance: float
    legit_mean_distance: float
    high_frequency_fraud_rate: float
    normal_frequency_fraud_rate: float
    new_account_fraud_rate: float
    mature_account_fraud_rate: float


def to_frame(records: RecordSet) -> pd.DataFrame:
    """Return ``records`` as a DataFrame with one column per field."""
    if isinstance(records, pd.DataFrame):
        return records
    columns = FEATURES + [LABEL]
    return pd.DataFrame([r.to_dict() for r in records], columns=columns)


def _safe_mean(values: pd.Series) -> float:
    return float(values.mean()) if len(values) else 0.0


def _rate(mask: pd.Series, labels: pd.Series) -> float:
    selected = labels[mask]
    if len(selected) == 0:
        return 0.0
    return float((selected == 1).sum()) / len(selected)


class AnalyticsEngine:
    """
    Pure queries over transaction record sets.

    Every method accepts either a sequence of Transaction records or a
    DataFrame produced by :func:`to_frame`; passing a DataFrame avoids
    rebuilding it when several queries run over the same set.

    Example:
        engine = AnalyticsEngine()
        frame = to_frame(records)
        rate = engine.fraud_rate(frame, "amount", 500, 100000)
    """

    def summary(self, records: RecordSet) -> Dict[str, float]:
        """
        Count records by class.

        Returns:
            Dictionary with ``total``, ``fraud``, ``legitimate`` and
            ``fraud_rate`` (0.0 for an empty set).
        """
        df = to_frame(records)
        total = len(df)
        fraud = int((df[LABEL] == 1).sum()) if total else 0
        return {
            "total": total,
            "fraud": fraud,
            "legitimate": total - fraud,
            "fraud_rate": fraud / total if total else 0.0,
        }

    def stats(
        self, records: RecordSet, features: Sequence[str] = STATS_FEATURES
    ) -> Dict[str, FeatureStats]:
        """
        Compute mean and population standard deviation per feature.

        The standard deviation divides by N, not N - 1. An empty record set
        yields zeros.

        Args:
            records: Record set to describe.
            features: Feature names to include.

        Returns:
            Mapping of feature name to FeatureStats.
        """
        df = to_frame(records)
        result: Dict[str, FeatureStats] = {}
        for feature in features:
            if len(df) == 0:
                result[feature] = FeatureStats(mean=0.0, std=0.0)
                continue
            values = df[feature].astype(float).to_numpy()
            result[feature] = FeatureStats(
                mean=float(values.mean()),
                std=float(values.std(ddof=0)),
            )
        return result

    def class_stats(self, records: RecordSet) -> Dict[str, Dict[str, FeatureStats]]:
        """Return :meth:`stats` for the ``fraud`` and ``legitimate`` subsets."""
        df = to_frame(records)
        return {
            "fraud": self.stats(df[df[LABEL] == 1]),
            "legitimate": self.stats(df[df[LABEL] == 0]),
        }

    def fraud_rate(self, records: RecordSet, feature: str, lo: float, hi: float) -> float:
        """
        Fraction of fraudulent records among those with ``lo <= feature < hi``.

        Returns:
            The fraud rate, or 0.0 when no record falls within the range.
        """
        df = to_frame(records)
        if len(df) == 0:
            return 0.0
        values = df[feature]
        return _rate((values >= lo) & (values < hi), df[LABEL])

    def mean(self, records: RecordSet, feature: str) -> float:
        df = to_frame(records)
        return _safe_mean(df[feature]) if len(df) else 0.0

    def insights(self, records: RecordSet) -> Insights:
        """
        Compute the five exploratory fraud insights.

        Buckets:
            - night (hour >= 22 or hour <= 5) vs day (5 < hour < 22)
            - high amount [500, 100000) vs low amount [0, 50)
            - mean distance of fraudulent vs legitimate records
            - high frequency [6, 100) vs normal frequency [1, 4)
            - new account age [0, 90) vs mature account age [365, 10000)

        Returns:
            An Insights instance.
        """
        df = to_frame(records)
        if len(df) == 0:
            return Insights(0.0, 0.0, None, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

        labels = df[LABEL]
        night_mask = (df["hour"] >= 22) | (df["hour"] <= 5)
        night_rate = _rate(night_mask, labels)
        day_rate = _rate(~night_mask, labels)
        ratio = night_rate / day_rate if night_rate > 0 and day_rate > 0 else None

        return Insights(
            night_fraud_rate=night_rate,
            day_fraud_rate=day_rate,
            night_to_day_ratio=ratio,
            high_amount_fraud_rate=self.fraud_rate(df, "amount", 500, 100000),
            low_amount_fraud_rate=self.fraud_rate(df, "amount", 0, 50),
            fraud_mean_distance=_safe_mean(df.loc[labels == 1, "distance"]),
            legit_mean_distance=_safe_mean(df.loc[labels == 0, "distance"]),
            high_frequency_fraud_rate=self.fraud_rate(df, "frequency", 6, 100),
            normal_frequency_fraud_rate=self.fraud_rate(df, "frequency", 1, 4),
            new_account_fraud_rate=self.fraud_rate(df, "age", 0, 90),
            mature_account_fraud_rate=self.fraud_rate(df, "age", 365, 10000),
        )

    def chart_aggregates(self, records: RecordSet) -> Dict[str, List[float]]:
        """
        Aggregate arrays for the presentation layer's charts.

        Returns:
            Dictionary with keys:
                - ``legit_means`` / ``fraud_means``: class means over
                  STATS_FEATURES, in that order
                - ``fraud_count_by_amount``: fraud counts per
                  AMOUNT_COUNT_EDGES bucket
                - ``fraud_count_by_hour``: 24 hourly fraud counts
                - ``fraud_rate_by_amount`` / ``fraud_rate_by_distance`` /
                  ``fraud_rate_by_frequency``: rates per bucket of the
                  matching ``*_RATE_EDGES`` list
        """
        df = to_frame(records)
        fraud = df[df[LABEL] == 1]
        legit = df[df[LABEL] == 0]

        amount_counts = [
            int(((fraud["amount"] >= lo) & (fraud["amount"] < hi)).sum())
            for lo, hi in zip(AMOUNT_COUNT_EDGES[:-1], AMOUNT_COUNT_EDGES[1:])
        ]
        hourly = fraud["hour"].astype(int).value_counts().reindex(range(24), fill_value=0)

        return {
            "legit_means": [_safe_mean(legit[f]) for f in STATS_FEATURES],
            "fraud_means": [_safe_mean(fraud[f]) for f in STATS_FEATURES],
            "fraud_count_by_amount": amount_counts,
            "fraud_count_by_hour": [int(c) for c in hourly.tolist()],
            "fraud_rate_by_amount": self._bucket_rates(df, "amount", AMOUNT_RATE_EDGES),
            "fraud_rate_by_distance": self._bucket_rates(df, "distance", DISTANCE_RATE_EDGES),
            "fraud_rate_by_frequency": self._bucket_rates(df, "frequency", FREQUENCY_RATE_EDGES),
        }

    def _bucket_rates(self, df: pd.DataFrame, feature: str, edges: Sequence[float]) -> List[float]:
        return [self.fraud_rate(df, feature, lo, hi) for lo, hi in zip(edges[:-1], edges[1:])]
