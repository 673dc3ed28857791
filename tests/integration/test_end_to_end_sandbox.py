"""
Integration tests for the complete sandbox workflow.

Validates the end-to-end flow: synthesize -> add label noise -> normalize ->
train -> select -> score, using the real torch classifier.
"""

import pytest

from fraud_sandbox.config import SandboxConfig
from fraud_sandbox.errors import NotReady
from fraud_sandbox.exploratory_analysis import AnalyticsEngine
from fraud_sandbox.feature_normalization import FeatureNormalizer
from fraud_sandbox.inference import InferenceService
from fraud_sandbox.label_noise import NoiseInjector
from fraud_sandbox.model_orchestration import ModelOrchestrator
from fraud_sandbox.session import SandboxSession
from fraud_sandbox.transaction_synthesis import TransactionSynthesizer


class TestEndToEndSandbox:
    """Integration tests for the complete training and scoring workflow."""

    @pytest.fixture(scope="class")
    def trained(self):
        """1,000 training + 200 held-out records, shallow model, 50 epochs."""
        synthesizer = TransactionSynthesizer(seed=1234)
        train = synthesizer.generate(1000)
        test = synthesizer.generate(200)
        NoiseInjector(seed=1234).apply_label_noise(train)

        normalizer = FeatureNormalizer()
        orchestrator = ModelOrchestrator(normalizer)
        events = []
        orchestrator.train(["shallow"], train, test, on_progress=events.append)
        return {
            "train": train,
            "test": test,
            "normalizer": normalizer,
            "orchestrator": orchestrator,
            "events": events,
        }

    def test_history_length_and_accuracy_range(self, trained):
        result = trained["orchestrator"].results["shallow"]
        assert len(result.history) == 50
        assert 0.0 <= result.final_validation_accuracy <= 1.0
        for record in result.history:
            assert 0.0 <= record.train_accuracy <= 1.0
            assert 0.0 <= record.validation_accuracy <= 1.0

    def test_only_candidate_is_best(self, trained):
        assert trained["orchestrator"].best_model == "shallow"

    def test_progress_reaches_completion(self, trained):
        events = trained["events"]
        assert len(events) == 50
        assert events[-1].fraction == pytest.approx(1.0)
        fractions = [e.fraction for e in events]
        assert fractions == sorted(fractions)

    def test_scores_held_out_transactions(self, trained):
        service = InferenceService(trained["normalizer"], trained["orchestrator"])
        for record in trained["test"][:20]:
            prediction = service.predict(record)
            assert 0.0 <= prediction.probability <= 1.0
            assert prediction.is_fraud == (prediction.probability > 0.5)
            assert prediction.model == "shallow"

    def test_held_out_metrics(self, trained):
        service = InferenceService(trained["normalizer"], trained["orchestrator"])
        metrics = service.evaluate(trained["test"])
        assert 0.0 <= metrics["accuracy"] <= 1.0
        assert metrics["accuracy"] == pytest.approx(
            trained["orchestrator"].best_result.final_validation_accuracy
        )

    def test_analytics_over_training_set(self, trained):
        engine = AnalyticsEngine()
        summary = engine.summary(trained["train"])
        assert summary["total"] == 1000
        assert 0.0 < summary["fraud_rate"] < 0.15


class TestSessionWorkflow:
    """End-to-end tests through SandboxSession."""

    def test_full_session(self, tmp_path):
        session = SandboxSession(SandboxConfig(seed=5, dataset_size=600, epochs=5))
        session.generate_data()

        with pytest.raises(NotReady):
            session.predict(session.random_transaction())

        session.train_models(["shallow", "medium"])
        assert list(session.orchestrator.results) == ["shallow", "medium"]
        assert session.orchestrator.best_model in {"shallow", "medium"}

        prediction = session.predict(session.random_transaction())
        assert 0.0 <= prediction.probability <= 1.0

        frame = session.orchestrator.comparison_frame()
        assert frame["is_best"].sum() == 1
        assert session.export("train", tmp_path).exists()
