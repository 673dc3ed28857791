"""
Command-line entry point: generate data, explore it, train, score.

Example:
    fraud-sandbox --seed 42 --size 2000 --models shallow medium \\
        --export-dir out/ \\
        --predict '{"amount": 900, "hour": 2, "day": 3, "merchant": 1,
                    "distance": 120, "frequency": 7, "age": 40, "balance": 3000}'
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .classifiers import ARCHITECTURES
from .config import load_config, validate_config
from .errors import ConfigurationError, SandboxError
from .model_orchestration import TrainingProgress
from .session import SandboxSession

logger = logging.getLogger("fraud_sandbox")

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fraud-sandbox",
        description="Synthesize banking transactions, train fraud classifiers and score transactions.",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--size", type=int, help="Number of training transactions")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible runs")
    parser.add_argument(
        "--models",
        nargs="+",
        choices=sorted(ARCHITECTURES),
        help="Architectures to train, in order",
    )
    parser.add_argument("--epochs", type=int, help="Epochs per architecture")
    parser.add_argument("--export-dir", help="Write train/test CSV files to this directory")
    parser.add_argument("--predict", help="JSON object with a transaction to score")
    parser.add_argument("--skip-training", action="store_true", help="Only generate and analyze data")
    return parser


def _log_progress(progress: TrainingProgress) -> None:
    logger.debug("Training progress %s (%s epoch %d)",
                 progress.percent_label, progress.architecture, progress.epoch)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.size is not None:
        config.dataset_size = args.size
    if args.seed is not None:
        config.seed = args.seed
    if args.models:
        config.selected_architectures = args.models
    if args.epochs is not None:
        config.epochs = args.epochs
    try:
        validate_config(config)
    except ConfigurationError as e:
        parser.error(str(e))

    logging.basicConfig(level=config.log_level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    session = SandboxSession(config)
    session.generate_data()

    insights = session.analyze()["insights"]
    if insights.night_to_day_ratio is not None:
        logger.info("Night transactions show %.2fx the day fraud rate", insights.night_to_day_ratio)
    logger.info(
        "High-value (>500) fraud rate %.2f%% vs small (<50) %.2f%%",
        insights.high_amount_fraud_rate * 100, insights.low_amount_fraud_rate * 100,
    )
    logger.info(
        "New accounts (<90d) fraud rate %.2f%% vs mature (>1yr) %.2f%%",
        insights.new_account_fraud_rate * 100, insights.mature_account_fraud_rate * 100,
    )

    if args.export_dir:
        Path(args.export_dir).mkdir(parents=True, exist_ok=True)
        session.export("train", args.export_dir)
        session.export("test", args.export_dir)

    if args.skip_training:
        return 0

    try:
        session.train_models(on_progress=_log_progress)
        for rank, result in enumerate(session.orchestrator.ranked_results(), start=1):
            logger.info("%d. %s: %.2f%%", rank, result.architecture,
                        result.final_validation_accuracy * 100)
        metrics = session.evaluate()
        logger.info("Held-out metrics: %s", json.dumps(metrics, sort_keys=True))

        if args.predict:
            prediction = session.predict(json.loads(args.predict))
            verdict = "FRAUD" if prediction.is_fraud else "LEGITIMATE"
            logger.info("%s (p=%.4f, model=%s, risk factors: %s)", verdict,
                        prediction.probability, prediction.model,
                        ", ".join(prediction.risk_factors) or "none")
    except SandboxError as e:
        logger.error("%s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
