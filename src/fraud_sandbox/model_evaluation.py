"""
Model evaluation helpers for trained fraud classifiers.

Accuracy alone flatters a classifier on a dataset where only about 2% of
records are fraudulent, so held-out evaluation also reports precision,
recall, F1 and AUC-ROC.

Example:
    from fraud_sandbox.model_evaluation import ModelEvaluator

    evaluator = ModelEvaluator()
    metrics = evaluator.calculate_metrics(y_true, y_pred, y_pred_proba)
"""

from typing import Dict

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    f1_score,
    precision_score,
    recall_score,
    roc_auc_score,
)

from .classifiers import DECISION_THRESHOLD, TrainableClassifier


class ModelEvaluator:
    """
    Standard classification metrics for a trained classifier.

    Example:
        evaluator = ModelEvaluator()
        metrics = evaluator.evaluate_classifier(clf, X_test, y_test)
        print(metrics["recall"])
    """

    def calculate_metrics(
        self,
        y_true: np.ndarray,
        y_pred: np.ndarray,
        y_pred_proba: np.ndarray,
    ) -> Dict[str, float]:
        """
        Calculate accuracy, precision, recall, F1 and AUC-ROC.

        Args:
            y_true: True labels.
            y_pred: Predicted labels.
            y_pred_proba: Predicted probabilities for the fraud class.

        Returns:
            Dictionary with accuracy, precision, recall, f1_score and auc_roc.
            ``auc_roc`` is 0.0 when ``y_true`` holds a single class.

        Example:
            metrics = evaluator.calculate_metrics(
                np.array([0, 1, 1, 0]),
                np.array([0, 1, 0, 0]),
                np.array([0.1, 0.9, 0.4, 0.2]),
            )
        """
        y_true = np.asarray(y_true).astype(int)
        y_pred = np.asarray(y_pred).astype(int)

        if len(np.unique(y_true)) < 2:
            auc = 0.0
        else:
            auc = float(roc_auc_score(y_true, y_pred_proba))

        return {
            "accuracy": float(accuracy_score(y_true, y_pred)),
            "precision": float(precision_score(y_true, y_pred, zero_division=0)),
            "recall": float(recall_score(y_true, y_pred, zero_division=0)),
            "f1_score": float(f1_score(y_true, y_pred, zero_division=0)),
            "auc_roc": auc,
        }

    def evaluate_classifier(
        self,
        classifier: TrainableClassifier,
        features: np.ndarray,
        labels: np.ndarray,
        threshold: float = DECISION_THRESHOLD,
    ) -> Dict[str, float]:
        """
        Score ``features`` with ``classifier`` and compute metrics.

        A record is predicted fraudulent when its probability is strictly
        greater than ``threshold``.
        """
        probabilities = np.asarray(classifier.predict(features)).reshape(-1)
        predictions = (probabilities > threshold).astype(int)
        return self.calculate_metrics(labels, predictions, probabilities)
