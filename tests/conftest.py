"""Shared fixtures for the sandbox test suite."""

import numpy as np
import pytest

from fraud_sandbox.transaction_synthesis import Transaction


def make_transaction(**overrides):
    """Build a Transaction with ordinary legitimate values, overriding fields."""
    values = dict(
        amount=42.5, hour=13, day=2, merchant=4, distance=3.2,
        frequency=2, age=900, balance=5400.0, is_fraud=0,
    )
    values.update(overrides)
    return Transaction(**values)


class FakeClassifier:
    """Classifier double that replays scripted per-epoch validation accuracies."""

    def __init__(self, val_accs=None, probability=0.1, fail_on_fit=None):
        self.val_accs = val_accs
        self.probability = probability
        self.fail_on_fit = fail_on_fit
        self.fit_calls = []

    def fit(self, features, labels, *, epochs, batch_size, validation_data, on_epoch_end=None):
        self.fit_calls.append({
            "n_samples": len(features),
            "epochs": epochs,
            "batch_size": batch_size,
            "n_validation": len(validation_data[0]),
        })
        if self.fail_on_fit is not None:
            raise self.fail_on_fit
        for epoch in range(epochs):
            if self.val_accs is None:
                val_acc = 0.9
            else:
                val_acc = self.val_accs[min(epoch, len(self.val_accs) - 1)]
            if on_epoch_end is not None:
                on_epoch_end(epoch, {"acc": 0.95, "val_acc": val_acc, "val_loss": 0.2})

    def predict(self, features):
        n = np.atleast_2d(features).shape[0]
        return np.full(n, self.probability)


@pytest.fixture
def sample_records():
    """Small hand-built record set with known fraud rates."""
    return [
        make_transaction(amount=10.0, hour=2, distance=1.0, frequency=1, age=30, is_fraud=1),
        make_transaction(amount=20.0, hour=23, distance=120.0, frequency=8, age=50, is_fraud=1),
        make_transaction(amount=600.0, hour=12, distance=5.0, frequency=2, age=400, is_fraud=0),
        make_transaction(amount=800.0, hour=14, distance=15.0, frequency=3, age=1000, is_fraud=1),
        make_transaction(amount=30.0, hour=9, distance=2.0, frequency=2, age=800, is_fraud=0),
        make_transaction(amount=100.0, hour=18, distance=7.0, frequency=1, age=2000, is_fraud=0),
    ]
