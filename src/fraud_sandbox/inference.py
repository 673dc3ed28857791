"""
Single-transaction scoring with the best trained model.

Risk factors returned alongside a prediction come from fixed rules evaluated
on the raw transaction. They accompany the model's probability and are not
derived from the model.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Union

import numpy as np

from .classifiers import DECISION_THRESHOLD
from .errors import NotReady
from .feature_normalization import FeatureNormalizer
from .model_evaluation import ModelEvaluator
from .model_orchestration import ModelOrchestrator
from .transaction_synthesis import Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    probability: float
    is_fraud: bool
    model: str
    risk_factors: List[str] = field(default_factory=list)


def risk_factors(transaction: Transaction) -> List[str]:
    """Evaluate the static heuristic rules against raw feature values."""
    factors = []
    if transaction.amount > 500:
        factors.append("high amount")
    if transaction.hour >= 22 or transaction.hour <= 5:
        factors.append("late night")
    if transaction.distance > 50:
        factors.append("far from home")
    if transaction.frequency > 5:
        factors.append("high frequency")
    if transaction.age < 90:
        factors.append("new account")
    return factors


class InferenceService:
    """
    Score transactions with the orchestrator's best model.

    Args:
        normalizer: Fitted FeatureNormalizer; it is never refitted here.
        orchestrator: ModelOrchestrator that has completed a training run.

    Example:
        service = InferenceService(normalizer, orchestrator)
        prediction = service.predict(Transaction.from_mapping(raw_values))
        if prediction.is_fraud:
            print(prediction.probability, prediction.risk_factors)
    """

    def __init__(self, normalizer: FeatureNormalizer, orchestrator: ModelOrchestrator) -> None:
        self.normalizer = normalizer
        self.orchestrator = orchestrator
        self.evaluator = ModelEvaluator()

    def _require_ready(self) -> None:
        if not self.normalizer.is_fitted:
            raise NotReady("Normalization parameters are not fitted; train models first")
        if self.orchestrator.best_result is None:
            raise NotReady("No trained model is available; train models first")

    def predict(self, transaction: Union[Transaction, Mapping[str, Any]]) -> Prediction:
        """
        Score one raw transaction.

        Args:
            transaction: A Transaction or a mapping of raw feature values.

        Returns:
            Prediction with the fraud probability, the verdict
            (probability strictly above 0.5), the model id and risk factors.

        Raises:
            NotReady: If normalization is not fitted or no best model exists.
        """
        self._require_ready()
        if not isinstance(transaction, Transaction):
            transaction = Transaction.from_mapping(transaction)

        best = self.orchestrator.best_result
        features = self.normalizer.transform_one(transaction).reshape(1, -1)
        probability = float(np.asarray(best.classifier.predict(features)).reshape(-1)[0])

        prediction = Prediction(
            probability=probability,
            is_fraud=probability > DECISION_THRESHOLD,
            model=best.architecture,
            risk_factors=risk_factors(transaction),
        )
        logger.info(
            "Scored transaction with %s: p=%.4f fraud=%s",
            prediction.model, prediction.probability, prediction.is_fraud,
        )
        return prediction

    def evaluate(self, records: Sequence[Transaction]) -> Dict[str, float]:
        """
        Compute held-out metrics for the best model on labelled records.

        Raises:
            NotReady: If normalization is not fitted or no best model exists.
        """
        self._require_ready()
        features = self.normalizer.transform(records)
        labels = self.normalizer.labels(records)
        return self.evaluator.evaluate_classifier(
            self.orchestrator.best_result.classifier, features, labels,
        )
