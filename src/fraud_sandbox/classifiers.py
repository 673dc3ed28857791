"""
Trainable classifier adapter for the model orchestrator.

The orchestrator only needs three capabilities from a classifier: construct
one from an architecture configuration, fit it with a per-epoch progress
callback, and predict fraud probabilities. This module defines that
capability interface and a PyTorch implementation of it.

Architecture variants differ only in hidden-layer width, depth and dropout:

    shallow  8                 dropout 0.1
    medium   16 -> 8           dropout 0.2, 0.2
    deep     32 -> 16 -> 8     dropout 0.3, 0.2, 0.2
    wide     64 -> 32          dropout 0.3, 0.2

Every variant takes the 8 normalized features and ends in a single sigmoid
output unit.

Example:
    from fraud_sandbox.classifiers import ARCHITECTURES, build_classifier

    clf = build_classifier(ARCHITECTURES["medium"], seed=0)
    clf.fit(X_train, y_train, epochs=50, batch_size=32,
            validation_data=(X_val, y_val),
            on_epoch_end=lambda epoch, logs: print(epoch, logs["val_acc"]))
    probabilities = clf.predict(X_val)
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol, Tuple

import numpy as np
import torch
import torch.nn as nn
from sklearn.metrics import accuracy_score

from .transaction_synthesis import FEATURES

EpochCallback = Callable[[int, Dict[str, float]], None]

DEFAULT_LEARNING_RATE = 0.001
DECISION_THRESHOLD = 0.5


@dataclass(frozen=True)
class ArchitectureConfig:
    """Width, depth and dropout of one classifier variant."""

    name: str
    hidden_units: Tuple[int, ...]
    dropout_rates: Tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.hidden_units) != len(self.dropout_rates):
            raise ValueError(
                f"Architecture '{self.name}' needs one dropout rate per hidden layer"
            )


ARCHITECTURES: Dict[str, ArchitectureConfig] = {
    "shallow": ArchitectureConfig("shallow", (8,), (0.1,)),
    "medium": ArchitectureConfig("medium", (16, 8), (0.2, 0.2)),
    "deep": ArchitectureConfig("deep", (32, 16, 8), (0.3, 0.2, 0.2)),
    "wide": ArchitectureConfig("wide", (64, 32), (0.3, 0.2)),
}


class TrainableClassifier(Protocol):
    """Capability interface the orchestrator and inference service rely on."""

    def fit(
        self,
        features: np.ndarray,
        labels: np.ndarray,
        *,
        epochs: int,
        batch_size: int,
        validation_data: Tuple[np.ndarray, np.ndarray],
        on_epoch_end: Optional[EpochCallback] = None,
    ) -> None:
        ...

    def predict(self, features: np.ndarray) -> np.ndarray:
        ...


ClassifierFactory = Callable[[ArchitectureConfig], TrainableClassifier]


def build_network(config: ArchitectureConfig, input_dim: int = len(FEATURES)) -> nn.Sequential:
    """Build the layer stack for ``config``; the output is a single logit."""
    layers = []
    width = input_dim
    for units, rate in zip(config.hidden_units, config.dropout_rates):
        layers.append(nn.Linear(width, units))
        layers.append(nn.ReLU())
        layers.append(nn.Dropout(p=rate))
        width = units
    layers.append(nn.Linear(width, 1))
    return nn.Sequential(*layers)


class TorchClassifier:
    """
    Feed-forward binary classifier trained with Adam on binary cross-entropy.

    Args:
        config: Architecture variant to build.
        seed: Optional seed for weight initialization and batch shuffling.
        learning_rate: Adam learning rate.
    """

    def __init__(
        self,
        config: ArchitectureConfig,
        seed: Optional[int] = None,
        learning_rate: float = DEFAULT_LEARNING_RATE,
    ) -> None:
        self.config = config
        self.learning_rate = learning_rate
        self._generator = torch.Generator()
        if seed is not None:
            self._generator.manual_seed(seed)
            with torch.random.fork_rng(devices=[]):
                torch.manual_seed(seed)
                self.network = build_network(config)
        else:
            self._generator.seed()
            self.network = build_network(config)
        self.loss_fn = nn.BCEWithLogitsLoss()

    def fit(
        self,
        features: np.ndarray,
        labels: np.ndarray,
        *,
        epochs: int,
        batch_size: int,
        validation_data: Tuple[np.ndarray, np.ndarray],
        on_epoch_end: Optional[EpochCallback] = None,
    ) -> None:
        """
        Train for ``epochs`` passes over shuffled mini-batches.

        After every epoch ``on_epoch_end(epoch_index, logs)`` is called with a
        zero-based epoch index and ``logs`` holding ``acc`` (running training
        accuracy over the epoch's batches), ``val_acc`` and ``val_loss``.
        """
        x = torch.as_tensor(np.asarray(features), dtype=torch.float32)
        y = torch.as_tensor(np.asarray(labels), dtype=torch.float32).reshape(-1, 1)
        x_val = torch.as_tensor(np.asarray(validation_data[0]), dtype=torch.float32)
        y_val = torch.as_tensor(np.asarray(validation_data[1]), dtype=torch.float32).reshape(-1, 1)

        optimizer = torch.optim.Adam(self.network.parameters(), lr=self.learning_rate)
        n_samples = x.shape[0]

        for epoch in range(epochs):
            self.network.train()
            order = torch.randperm(n_samples, generator=self._generator)
            correct = 0
            for start in range(0, n_samples, batch_size):
                idx = order[start:start + batch_size]
                logits = self.network(x[idx])
                loss = self.loss_fn(logits, y[idx])

                optimizer.zero_grad()
                loss.backward()
                optimizer.step()

                with torch.no_grad():
                    predicted = (torch.sigmoid(logits) > DECISION_THRESHOLD).float()
                    correct += int((predicted == y[idx]).sum().item())

            val_acc, val_loss = self._validate(x_val, y_val)
            if on_epoch_end is not None:
                on_epoch_end(epoch, {
                    "acc": correct / n_samples if n_samples else 0.0,
                    "val_acc": val_acc,
                    "val_loss": val_loss,
                })

    def predict(self, features: np.ndarray) -> np.ndarray:
        """Return fraud probabilities in [0, 1], one per row of ``features``."""
        x = torch.as_tensor(np.atleast_2d(np.asarray(features)), dtype=torch.float32)
        self.network.eval()
        with torch.no_grad():
            probabilities = torch.sigmoid(self.network(x)).reshape(-1)
        return probabilities.numpy()

    def _validate(self, x_val: torch.Tensor, y_val: torch.Tensor) -> Tuple[float, float]:
        if x_val.shape[0] == 0:
            return 0.0, 0.0
        self.network.eval()
        with torch.no_grad():
            logits = self.network(x_val)
            loss = float(self.loss_fn(logits, y_val).item())
            predicted = (torch.sigmoid(logits) > DECISION_THRESHOLD).int().reshape(-1).numpy()
        accuracy = float(accuracy_score(y_val.int().reshape(-1).numpy(), predicted))
        return accuracy, loss


def build_classifier(
    config: ArchitectureConfig,
    seed: Optional[int] = None,
    learning_rate: float = DEFAULT_LEARNING_RATE,
) -> TorchClassifier:
    """Construct an untrained classifier for ``config``."""
    return TorchClassifier(config, seed=seed, learning_rate=learning_rate)
