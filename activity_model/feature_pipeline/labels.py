"""
Label encoding for the ``classe`` column.

Letters A–E map to codes 1–5. XGBoost works with zero-based class indices,
so the ``code - 1`` offset is applied only when handing labels to the model
and removed again on the way out.
"""
import numpy as np
import pandas as pd
import logging
from typing import Optional

from activity_model import config

logger = logging.getLogger(__name__)

CODE_TO_LABEL = {code: letter for letter, code in config.LABEL_MAPPING.items()}


def encode_labels(labels: pd.Series) -> pd.Series:
    """
    Map label letters to integer codes (A=1 ... E=5).

    Raises:
        ValueError: If any label is outside the configured alphabet.
    """
    codes = labels.map(config.LABEL_MAPPING)
    unknown = labels[codes.isna()]
    if len(unknown) > 0:
        logger.error(f"Unknown labels: {sorted(unknown.astype(str).unique())}")
        raise ValueError(
            f"Labels outside alphabet '{config.LABEL_ALPHABET}': "
            f"{sorted(unknown.astype(str).unique())}"
        )
    return codes.astype(int)


def decode_labels(codes, index: Optional[pd.Index] = None) -> pd.Series:
    """
    Map integer codes back to label letters (1=A ... 5=E).

    Raises:
        ValueError: If any code has no letter.
    """
    codes = pd.Series(np.asarray(codes, dtype=int), index=index)
    letters = codes.map(CODE_TO_LABEL)
    if letters.isna().any():
        bad = sorted(codes[letters.isna()].unique().tolist())
        raise ValueError(f"Codes without a label: {bad}")
    return letters


def to_class_index(codes) -> np.ndarray:
    """Label codes 1..K → zero-based class indices for XGBoost."""
    return np.asarray(codes, dtype=int) - 1


def from_class_index(indices) -> np.ndarray:
    """Zero-based class indices from XGBoost → label codes 1..K."""
    return np.asarray(indices, dtype=int) + 1
