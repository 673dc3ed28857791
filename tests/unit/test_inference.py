"""
Unit tests for the inference service.

Tests readiness checks, strict decision threshold, use of fitted
normalization parameters and the heuristic risk factors.
"""

from unittest.mock import Mock

import numpy as np
import pytest

from fraud_sandbox.errors import InvalidOperation, NotReady
from fraud_sandbox.feature_normalization import FeatureNormalizer
from fraud_sandbox.inference import InferenceService, risk_factors
from fraud_sandbox.model_orchestration import ModelOrchestrator
from tests.conftest import FakeClassifier, make_transaction


def _trained_service(records, probability):
    normalizer = FeatureNormalizer()
    clf = FakeClassifier(probability=probability)
    orchestrator = ModelOrchestrator(normalizer, classifier_factory=lambda config: clf, epochs=3)
    orchestrator.train(["shallow"], records, records)
    return InferenceService(normalizer, orchestrator), clf


class TestReadiness:
    """Tests for NotReady checks."""

    def test_predict_before_fit(self):
        normalizer = FeatureNormalizer()
        service = InferenceService(normalizer, ModelOrchestrator(normalizer))
        with pytest.raises(NotReady):
            service.predict(make_transaction())

    def test_not_ready_is_invalid_operation(self):
        assert issubclass(NotReady, InvalidOperation)

    def test_fitted_without_model(self, sample_records):
        normalizer = FeatureNormalizer()
        normalizer.fit(sample_records)
        service = InferenceService(normalizer, ModelOrchestrator(normalizer))
        with pytest.raises(NotReady):
            service.predict(make_transaction())

    def test_evaluate_before_training(self, sample_records):
        normalizer = FeatureNormalizer()
        service = InferenceService(normalizer, ModelOrchestrator(normalizer))
        with pytest.raises(NotReady):
            service.evaluate(sample_records)


class TestPredict:
    """Tests for InferenceService.predict."""

    def test_fraud_above_threshold(self, sample_records):
        service, _ = _trained_service(sample_records, probability=0.8)
        prediction = service.predict(make_transaction())
        assert prediction.is_fraud
        assert prediction.probability == pytest.approx(0.8)
        assert prediction.model == "shallow"

    def test_threshold_is_strict(self, sample_records):
        service, _ = _trained_service(sample_records, probability=0.5)
        assert not service.predict(make_transaction()).is_fraud

    def test_uses_fitted_params_without_refit(self, sample_records):
        service, clf = _trained_service(sample_records, probability=0.1)
        params = service.normalizer.params
        clf.predict = Mock(return_value=np.array([0.2]))

        service.predict(make_transaction(amount=1590.0))

        features = clf.predict.call_args[0][0]
        assert features.shape == (1, 8)
        assert features[0, 0] == pytest.approx(2.0)
        assert service.normalizer.params is params

    def test_accepts_mapping(self, sample_records):
        service, _ = _trained_service(sample_records, probability=0.1)
        prediction = service.predict({
            "amount": 900, "hour": 2, "day": 3, "merchant": 1,
            "distance": 120, "frequency": 7, "age": 40, "balance": 3000,
        })
        assert not prediction.is_fraud
        assert prediction.risk_factors == [
            "high amount", "late night", "far from home", "high frequency", "new account",
        ]

    def test_evaluate(self, sample_records):
        service, _ = _trained_service(sample_records, probability=0.9)
        metrics = service.evaluate(sample_records)
        assert metrics["recall"] == 1.0
        assert metrics["accuracy"] == 0.5


class TestRiskFactors:
    """Tests for the static heuristic rules."""

    def test_ordinary_transaction_has_none(self):
        assert risk_factors(make_transaction()) == []

    @pytest.mark.parametrize("overrides,expected", [
        ({"amount": 500.01}, ["high amount"]),
        ({"amount": 500.0}, []),
        ({"hour": 22}, ["late night"]),
        ({"hour": 5}, ["late night"]),
        ({"hour": 6}, []),
        ({"distance": 50.5}, ["far from home"]),
        ({"distance": 50.0}, []),
        ({"frequency": 6}, ["high frequency"]),
        ({"frequency": 5}, []),
        ({"age": 89}, ["new account"]),
        ({"age": 90}, []),
    ])
    def test_rule_boundaries(self, overrides, expected):
        assert risk_factors(make_transaction(**overrides)) == expected
