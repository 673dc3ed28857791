"""
Sandbox session: the single owner of all mutable workflow state.

A SandboxSession holds the generated datasets, the write-once normalizer,
the model orchestrator and the inference service, and passes them to each
other by reference. There is no module-level state, so two sessions never
interfere with each other.

Example:
    from fraud_sandbox.config import SandboxConfig
    from fraud_sandbox.session import SandboxSession

    session = SandboxSession(SandboxConfig(seed=42, dataset_size=1000))
    session.generate_data()
    session.train_models(["shallow", "medium"])
    prediction = session.predict(session.random_transaction())
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from .classifiers import ArchitectureConfig, TrainableClassifier, build_classifier
from .config import SandboxConfig, validate_config
from .dataset_export import default_filename, export_csv
from .exploratory_analysis import AnalyticsEngine
from .feature_normalization import FeatureNormalizer
from .inference import InferenceService, Prediction
from .label_noise import NoiseInjector
from .model_orchestration import ModelOrchestrator, ModelResult, ProgressCallback
from .transaction_synthesis import Transaction, TransactionSynthesizer

logger = logging.getLogger(__name__)


class SandboxSession:
    """
    Generate data, explore it, train models and score transactions.

    Args:
        config: Session configuration; defaults are used when None.
    """

    def __init__(self, config: Optional[SandboxConfig] = None) -> None:
        self.config = validate_config(config or SandboxConfig())

        data_seq, noise_seq, model_seq = np.random.SeedSequence(self.config.seed).spawn(3)
        self.synthesizer = TransactionSynthesizer(
            rng=np.random.default_rng(data_seq),
            fraud_prior=self.config.fraud_prior,
        )
        self.noise_injector = NoiseInjector(rng=np.random.default_rng(noise_seq))
        self._model_rng = np.random.default_rng(model_seq)
        self.analytics = AnalyticsEngine()

        self.train_set: List[Transaction] = []
        self.test_set: List[Transaction] = []
        self._reset_models()

    def _reset_models(self) -> None:
        self.normalizer = FeatureNormalizer()
        self.orchestrator = ModelOrchestrator(
            normalizer=self.normalizer,
            classifier_factory=self._build_classifier,
            epochs=self.config.epochs,
            batch_size=self.config.batch_size,
        )
        self.inference = InferenceService(self.normalizer, self.orchestrator)

    def _build_classifier(self, architecture: ArchitectureConfig) -> TrainableClassifier:
        seed = None
        if self.config.seed is not None:
            seed = int(self._model_rng.integers(0, 2**31 - 1))
        return build_classifier(architecture, seed=seed, learning_rate=self.config.learning_rate)

    def generate_data(self, size: Optional[int] = None) -> Dict[str, float]:
        """
        Replace both datasets with freshly synthesized records.

        ``size`` training records and ``floor(size * test_fraction)`` held-out
        records are generated, and label noise is applied to the training
        set only. A new dataset gets a new normalizer and orchestrator, so
        models trained on the previous dataset are dropped.

        Returns:
            The training-set summary from AnalyticsEngine.summary.
        """
        size = self.config.dataset_size if size is None else int(size)
        if size <= 0:
            raise ValueError(f"Dataset size must be positive, got {size}")

        logger.info("Generating %d banking transactions...", size)
        self.train_set = self.synthesizer.generate(size)
        self.test_set = self.synthesizer.generate(int(size * self.config.test_fraction))
        self.noise_injector.apply_label_noise(self.train_set, rate=self.config.label_noise_rate)
        self._reset_models()

        summary = self.analytics.summary(self.train_set)
        logger.info("Dataset generated! Fraud rate: %.2f%%", summary["fraud_rate"] * 100)
        return summary

    def analyze(self) -> Dict[str, Any]:
        """Run every exploratory query over the training set."""
        return {
            "summary": self.analytics.summary(self.train_set),
            "class_stats": self.analytics.class_stats(self.train_set),
            "insights": self.analytics.insights(self.train_set),
            "charts": self.analytics.chart_aggregates(self.train_set),
        }

    def train_models(
        self,
        selected: Optional[Sequence[str]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, ModelResult]:
        """Train ``selected`` architectures (default: the configured ones)."""
        selected = list(selected) if selected is not None else self.config.selected_architectures
        return self.orchestrator.train(selected, self.train_set, self.test_set, on_progress)

    def predict(self, transaction: Union[Transaction, Mapping[str, Any]]) -> Prediction:
        return self.inference.predict(transaction)

    def evaluate(self) -> Dict[str, float]:
        """Held-out metrics of the best model on the test set."""
        return self.inference.evaluate(self.test_set)

    def random_transaction(self) -> Transaction:
        """Draw one record from the synthesizer, e.g. to prefill a scoring form."""
        return self.synthesizer.generate_one()

    def export(self, kind: str, directory: Union[str, Path]) -> Path:
        """
        Write the ``train`` or ``test`` set to CSV inside ``directory``.

        Raises:
            ValueError: If ``kind`` is unknown or the dataset is empty.
        """
        datasets = {"train": self.train_set, "test": self.test_set}
        if kind not in datasets:
            raise ValueError(f"Unknown dataset kind '{kind}' (expected train or test)")
        records = datasets[kind]
        if not records:
            raise ValueError("Generate data first")
        path = Path(directory) / default_filename(kind, len(records))
        return export_csv(records, path)
