"""
Unit tests for the transaction synthesis module.

Tests TransactionSynthesizer class distribution properties, post-processing
ranges, seeding determinism, and Transaction record helpers.
"""

import dataclasses

import numpy as np
import pytest

from fraud_sandbox.transaction_synthesis import (
    FEATURES,
    Transaction,
    TransactionSynthesizer,
)


@pytest.fixture(scope="module")
def large_sample():
    """100,000 records from a fixed seed."""
    return TransactionSynthesizer(seed=2024).generate(100_000)


@pytest.fixture(scope="module")
def legit_sample():
    """Records drawn with a zero fraud prior, so every one is legitimate."""
    return TransactionSynthesizer(seed=11, fraud_prior=0.0).generate(20_000)


@pytest.fixture(scope="module")
def fraud_sample():
    """Records drawn with fraud prior 1, so every one is fraudulent."""
    return TransactionSynthesizer(seed=12, fraud_prior=1.0).generate(5_000)


class TestFraudPrior:
    """Tests for the realized fraud fraction."""

    def test_fraud_fraction_close_to_prior(self, large_sample):
        fraction = sum(r.is_fraud for r in large_sample) / len(large_sample)
        assert abs(fraction - 0.02) <= 0.003

    def test_labels_are_binary(self, large_sample):
        assert {r.is_fraud for r in large_sample} <= {0, 1}


class TestLegitimateDistribution:
    """Tests for legitimate-only samples."""

    def test_all_legitimate(self, legit_sample):
        assert all(r.is_fraud == 0 for r in legit_sample)

    def test_amount_within_clip_range(self, legit_sample):
        amounts = np.array([r.amount for r in legit_sample])
        assert amounts.min() >= 5
        assert amounts.max() <= 2000

    def test_distance_within_range(self, legit_sample):
        distances = np.array([r.distance for r in legit_sample])
        assert distances.min() >= 0
        assert distances.max() <= 500

    def test_travel_override_produces_long_distances(self, legit_sample):
        # Exponential distances are capped at 300, so anything beyond comes
        # from the travel case.
        distances = np.array([r.distance for r in legit_sample])
        assert (distances > 300).any()

    def test_daytime_hours_dominate(self, legit_sample):
        hours = np.array([r.hour for r in legit_sample])
        assert ((hours >= 7) & (hours < 22)).mean() > 0.8

    def test_accounts_mostly_mature(self, legit_sample):
        ages = np.array([r.age for r in legit_sample])
        assert (ages >= 200).mean() > 0.8
        assert ages.min() >= 30


class TestFraudDistribution:
    """Tests for fraud-only samples."""

    def test_amount_within_pattern_ranges(self, fraud_sample):
        amounts = np.array([r.amount for r in fraud_sample])
        assert amounts.min() >= 1
        assert amounts.max() <= 1600

    def test_card_testing_pattern_present(self, fraud_sample):
        small_high_velocity = [r for r in fraud_sample if r.amount < 31 and r.frequency >= 5]
        assert len(small_high_velocity) > 0.15 * len(fraud_sample)

    def test_frequency_within_pattern_ranges(self, fraud_sample):
        frequencies = np.array([r.frequency for r in fraud_sample])
        assert frequencies.min() >= 1
        assert frequencies.max() <= 16

    def test_balance_range(self, fraud_sample):
        balances = np.array([r.balance for r in fraud_sample])
        assert balances.min() >= 500
        assert balances.max() <= 12500

    def test_new_accounts_common(self, fraud_sample):
        ages = np.array([r.age for r in fraud_sample])
        assert (ages <= 80).mean() > 0.4


class TestPostProcessing:
    """Tests for the shared post-processing of every record."""

    def test_categorical_ranges(self, large_sample):
        assert {r.hour for r in large_sample} <= set(range(24))
        assert {r.day for r in large_sample} <= set(range(7))
        assert {r.merchant for r in large_sample} <= set(range(10))

    def test_counts_at_least_one(self, large_sample):
        assert min(r.frequency for r in large_sample) >= 1
        assert min(r.age for r in large_sample) >= 1

    def test_monetary_fields_rounded(self, large_sample):
        for r in large_sample[:500]:
            assert round(r.amount, 2) == r.amount
            assert round(r.balance, 2) == r.balance
            assert round(r.distance, 2) == r.distance

    def test_integer_fields_are_ints(self, large_sample):
        r = large_sample[0]
        for name in ("hour", "day", "merchant", "frequency", "age", "is_fraud"):
            assert isinstance(getattr(r, name), int)


class TestDeterminism:
    """Tests for injectable, seedable randomness."""

    def test_same_seed_same_records(self):
        a = TransactionSynthesizer(seed=5).generate(200)
        b = TransactionSynthesizer(seed=5).generate(200)
        assert a == b

    def test_injected_generator_is_used(self):
        a = TransactionSynthesizer(rng=np.random.default_rng(9)).generate(50)
        b = TransactionSynthesizer(rng=np.random.default_rng(9)).generate(50)
        assert a == b

    def test_different_seeds_differ(self):
        a = TransactionSynthesizer(seed=1).generate(50)
        b = TransactionSynthesizer(seed=2).generate(50)
        assert a != b

    def test_zero_count(self):
        assert TransactionSynthesizer(seed=0).generate(0) == []

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            TransactionSynthesizer(seed=0).generate(-1)


class TestTransaction:
    """Tests for the Transaction record."""

    def test_is_immutable(self):
        tx = TransactionSynthesizer(seed=3).generate_one()
        with pytest.raises(dataclasses.FrozenInstanceError):
            tx.amount = 1.0

    def test_feature_vector_order(self):
        tx = Transaction(1.5, 2, 3, 4, 5.5, 6, 7, 8.5, 1)
        assert tx.feature_vector() == [1.5, 2.0, 3.0, 4.0, 5.5, 6.0, 7.0, 8.5]
        assert len(FEATURES) == 8

    def test_from_mapping_defaults_label(self):
        tx = Transaction.from_mapping({
            "amount": "812.5", "hour": 2, "day": 5, "merchant": 3,
            "distance": 140, "frequency": 7, "age": 30, "balance": 2200,
        })
        assert tx.amount == 812.5
        assert tx.is_fraud == 0

    def test_from_mapping_accepts_export_label(self):
        tx = Transaction.from_mapping({
            "amount": 1, "hour": 2, "day": 5, "merchant": 3,
            "distance": 1, "frequency": 1, "age": 30, "balance": 2, "isFraud": 1,
        })
        assert tx.is_fraud == 1

    def test_from_mapping_missing_feature(self):
        with pytest.raises(KeyError):
            Transaction.from_mapping({"amount": 1})
