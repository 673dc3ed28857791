"""
Model orchestration module for the fraud-detection training sandbox.

This module provides the ModelOrchestrator class for training several
classifier architectures on the same normalized dataset, recording their
per-epoch history and selecting the best one by final validation accuracy.

Architectures train strictly one after another because they share the
normalized feature buffers and a single progress counter. A failure inside
any architecture's fit aborts the whole batch: results trained earlier in
the batch are discarded and the orchestrator keeps whatever it held before
the call.

Example:
    from fraud_sandbox.feature_normalization import FeatureNormalizer
    from fraud_sandbox.model_orchestration import ModelOrchestrator

    orchestrator = ModelOrchestrator(normalizer=FeatureNormalizer())
    results = orchestrator.train(
        ["shallow", "medium"], train_records, test_records,
        on_progress=lambda p: print(p.percent_label),
    )
    print(orchestrator.best_model, results[orchestrator.best_model].final_validation_accuracy)
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from .classifiers import (
    ARCHITECTURES,
    ArchitectureConfig,
    ClassifierFactory,
    TrainableClassifier,
    build_classifier,
)
from .errors import ConcurrentRunRejected, InvalidOperation
from .feature_normalization import FeatureNormalizer
from .transaction_synthesis import Transaction

logger = logging.getLogger(__name__)

DEFAULT_EPOCHS = 50
DEFAULT_BATCH_SIZE = 32


@dataclass(frozen=True)
class EpochRecord:
    epoch: int
    train_accuracy: float
    validation_accuracy: float
    validation_loss: float


@dataclass(frozen=True)
class TrainingProgress:
    """
    One progress event, emitted after every epoch.

    ``fraction`` is ``(architectures_completed + epoch / epochs) /
    total_architectures`` and grows monotonically from 0 to 1 over a batch.
    """

    architecture: str
    epoch: int
    fraction: float

    @property
    def percent_label(self) -> str:
        return f"{self.fraction * 100:.0f}%"


@dataclass
class ModelResult:
    """Outcome of training one architecture."""

    architecture: str
    history: List[EpochRecord]
    classifier: TrainableClassifier
    training_time_seconds: float = 0.0

    @property
    def final_validation_accuracy(self) -> float:
        return self.history[-1].validation_accuracy if self.history else 0.0

    @property
    def final_validation_loss(self) -> float:
        return self.history[-1].validation_loss if self.history else 0.0


@dataclass
class OrchestratorState:
    selected: List[str] = field(default_factory=list)
    results: Dict[str, ModelResult] = field(default_factory=dict)
    best_model: Optional[str] = None


ProgressCallback = Callable[[TrainingProgress], None]


def _default_factory(config: ArchitectureConfig) -> TrainableClassifier:
    return build_classifier(config)


def select_best(results: Mapping[str, ModelResult]) -> Optional[str]:
    """
    Return the id with the strictly greatest final validation accuracy.

    Iteration follows the mapping's insertion order, so on a tie the first
    trained architecture wins.
    """
    best_id: Optional[str] = None
    best_score = float("-inf")
    for architecture, result in results.items():
        if result.final_validation_accuracy > best_score:
            best_score = result.final_validation_accuracy
            best_id = architecture
    return best_id


class ModelOrchestrator:
    """
    Train a selection of architectures sequentially and pick the best.

    Args:
        normalizer: Shared FeatureNormalizer. It is fitted on the first
                    training set it sees and never refitted.
        classifier_factory: Callable building an untrained classifier from an
                    ArchitectureConfig. Defaults to the torch classifier.
        architectures: Registry of architecture ids to configurations.
        epochs: Epochs per architecture.
        batch_size: Mini-batch size.

    Example:
        orchestrator = ModelOrchestrator(normalizer, epochs=50, batch_size=32)
        orchestrator.train(["shallow"], train_records, test_records)
        df = orchestrator.comparison_frame()
    """

    def __init__(
        self,
        normalizer: FeatureNormalizer,
        classifier_factory: Optional[ClassifierFactory] = None,
        architectures: Optional[Mapping[str, ArchitectureConfig]] = None,
        epochs: int = DEFAULT_EPOCHS,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self.normalizer = normalizer
        self.classifier_factory = classifier_factory or _default_factory
        self.architectures = dict(architectures if architectures is not None else ARCHITECTURES)
        self.epochs = epochs
        self.batch_size = batch_size
        self.state = OrchestratorState()
        self._active = False

    @property
    def is_training(self) -> bool:
        return self._active

    @property
    def results(self) -> Dict[str, ModelResult]:
        return self.state.results

    @property
    def best_model(self) -> Optional[str]:
        return self.state.best_model

    @property
    def best_result(self) -> Optional[ModelResult]:
        if self.state.best_model is None:
            return None
        return self.state.results[self.state.best_model]

    def train(
        self,
        selected_ids: Sequence[str],
        train_set: Sequence[Transaction],
        validation_set: Sequence[Transaction],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, ModelResult]:
        """
        Train every selected architecture and select the best.

        Args:
            selected_ids: Architecture ids in training order. Duplicates are
                          dropped, keeping the first occurrence.
            train_set: Non-empty training records (normalization is fitted
                       on these if the normalizer is not yet fitted).
            validation_set: Held-out records scored after every epoch.
            on_progress: Optional callback receiving a TrainingProgress after
                         every epoch of every architecture.

        Returns:
            Mapping of architecture id to ModelResult, in training order.

        Raises:
            ConcurrentRunRejected: If a run is already active.
            InvalidOperation: If ``train_set`` or ``selected_ids`` is empty,
                or an id is not a known architecture.
            Exception: Whatever the classifier's fit raises; the batch is
                aborted and previously committed results are kept.
        """
        if self._active:
            raise ConcurrentRunRejected("A training run is already in progress")
        if len(train_set) == 0:
            raise InvalidOperation("Cannot train without data; generate a dataset first")

        selection = list(dict.fromkeys(selected_ids))
        if not selection:
            raise InvalidOperation("Select at least one architecture to train")
        unknown = [a for a in selection if a not in self.architectures]
        if unknown:
            raise InvalidOperation(f"Unknown architectures: {', '.join(unknown)}")

        self._active = True
        train_x = train_y = val_x = val_y = None
        try:
            self.normalizer.fit(train_set)
            train_x = self.normalizer.transform(train_set)
            train_y = self.normalizer.labels(train_set)
            val_x = self.normalizer.transform(validation_set)
            val_y = self.normalizer.labels(validation_set)

            results: Dict[str, ModelResult] = {}
            for completed, architecture in enumerate(selection):
                results[architecture] = self._train_one(
                    architecture, completed, len(selection),
                    train_x, train_y, val_x, val_y, on_progress,
                )

            best = select_best(results)
            self.state = OrchestratorState(selected=selection, results=results, best_model=best)
            logger.info(
                "Best model: %s (%.2f%%)",
                best, results[best].final_validation_accuracy * 100,
            )
            return results
        finally:
            del train_x, train_y, val_x, val_y
            logger.debug("Released normalized feature buffers")
            self._active = False

    def _train_one(
        self,
        architecture: str,
        completed: int,
        total: int,
        train_x: Any,
        train_y: Any,
        val_x: Any,
        val_y: Any,
        on_progress: Optional[ProgressCallback],
    ) -> ModelResult:
        logger.info("Training %s...", architecture)
        classifier = self.classifier_factory(self.architectures[architecture])
        history: List[EpochRecord] = []
        epochs = self.epochs

        def on_epoch_end(epoch: int, logs: Dict[str, float]) -> None:
            history.append(EpochRecord(
                epoch=epoch + 1,
                train_accuracy=float(logs["acc"]),
                validation_accuracy=float(logs["val_acc"]),
                validation_loss=float(logs["val_loss"]),
            ))
            if on_progress is not None:
                on_progress(TrainingProgress(
                    architecture=architecture,
                    epoch=epoch + 1,
                    fraction=(completed + (epoch + 1) / epochs) / total,
                ))

        start_time = time.time()
        classifier.fit(
            train_x,
            train_y,
            epochs=epochs,
            batch_size=self.batch_size,
            validation_data=(val_x, val_y),
            on_epoch_end=on_epoch_end,
        )
        result = ModelResult(
            architecture=architecture,
            history=history,
            classifier=classifier,
            training_time_seconds=time.time() - start_time,
        )
        logger.info("%s: %.2f%%", architecture, result.final_validation_accuracy * 100)
        return result

    def ranked_results(self) -> List[ModelResult]:
        """Results sorted by final validation accuracy, best first (stable)."""
        return sorted(
            self.state.results.values(),
            key=lambda r: r.final_validation_accuracy,
            reverse=True,
        )

    def comparison_frame(self) -> pd.DataFrame:
        """
        One row per trained architecture, in training order.

        Columns: ``architecture``, ``validation_accuracy``,
        ``validation_loss``, ``training_time_seconds``, ``is_best``.
        """
        rows = [
            {
                "architecture": name,
                "validation_accuracy": result.final_validation_accuracy,
                "validation_loss": result.final_validation_loss,
                "training_time_seconds": result.training_time_seconds,
                "is_best": name == self.state.best_model,
            }
            for name, result in self.state.results.items()
        ]
        return pd.DataFrame(
            rows,
            columns=[
                "architecture",
                "validation_accuracy",
                "validation_loss",
                "training_time_seconds",
                "is_best",
            ],
        )
