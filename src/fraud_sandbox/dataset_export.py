"""
Tabular export of synthesized transaction sets.

Columns are written in the fixed order amount, hour, day, merchant,
distance, frequency, age, balance, isFraud.
"""

import logging
from pathlib import Path
from typing import List, Sequence, Union

import pandas as pd

from .transaction_synthesis import FEATURES, LABEL, Transaction

logger = logging.getLogger(__name__)

EXPORT_COLUMNS: List[str] = FEATURES + ["isFraud"]


def to_frame(records: Sequence[Transaction]) -> pd.DataFrame:
    """Return ``records`` as a DataFrame with ``EXPORT_COLUMNS``."""
    df = pd.DataFrame([r.to_dict() for r in records], columns=FEATURES + [LABEL])
    return df.rename(columns={LABEL: "isFraud"})[EXPORT_COLUMNS]


def default_filename(kind: str, count: int) -> str:
    return f"banking_fraud_{kind}_{count}records.csv"


def export_csv(
    records: Sequence[Transaction],
    path: Union[str, Path],
) -> Path:
    """
    Write ``records`` to ``path`` as CSV.

    If ``path`` is an existing directory, the file is named after the record
    count (``banking_fraud_data_{n}records.csv``).

    Returns:
        The path written.
    """
    path = Path(path)
    if path.is_dir():
        path = path / default_filename("data", len(records))

    to_frame(records).to_csv(path, index=False)
    logger.info("Exported %d records to %s", len(records), path)
    return path
