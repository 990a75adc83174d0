"""
Inference module for the activity classifier.

Provides ActivityPredictor, which applies the trained model to the cleaned
unlabeled table and maps class indices back to the ``classe`` letters.
"""
import pandas as pd
import numpy as np
import logging
from typing import Any, List, Optional

from activity_model import config
from activity_model.feature_pipeline.labels import decode_labels, from_class_index

logger = logging.getLogger(__name__)


class ActivityPredictor:
    """
    Letter-grade predictor for exercise repetitions.

    Holds the in-memory model produced by the training pipeline; nothing is
    loaded from or written to disk.

    Attributes:
        model: Trained XGBoost classifier.
        feature_names: Feature columns in the order the model was fitted on.

    Example:
        >>> predictor = ActivityPredictor(model, X_fit.columns.tolist())
        >>> predictor.predict(test_clean).tolist()[:3]
        ['B', 'A', 'B']
    """

    def __init__(self, model: Any, feature_names: Optional[List[str]] = None):
        """
        Initialize ActivityPredictor.

        Args:
            model: Trained classifier whose predict() returns zero-based class indices.
            feature_names: Expected feature order. If None, read from the booster.
        """
        self.model = model

        if feature_names is None and hasattr(model, 'get_booster'):
            feature_names = model.get_booster().feature_names
        if feature_names is None:
            logger.warning("Could not extract feature names from model")
        self.feature_names = list(feature_names) if feature_names is not None else None

        logger.info("✓ ActivityPredictor initialized successfully")

    def _prepare_input(self, data: pd.DataFrame) -> pd.DataFrame:
        """
        Select and order the model's feature columns by name.

        Extra columns such as ``problem_id`` are ignored.

        Raises:
            KeyError: If any expected feature is missing.
        """
        if self.feature_names is None:
            logger.warning("Feature names not available. Using input column order.")
            return data.drop(columns=[config.ID_COLUMN], errors='ignore')

        missing_features = [f for f in self.feature_names if f not in data.columns]
        if missing_features:
            logger.error(f"Missing required features: {missing_features}")
            raise KeyError(f"Missing required features: {missing_features}")

        return data[self.feature_names]

    def predict_codes(self, data: pd.DataFrame) -> np.ndarray:
        """Predicted label codes (1..K), one per row, in input order."""
        features = self._prepare_input(data)
        return from_class_index(self.model.predict(features))

    def predict(self, data: pd.DataFrame) -> pd.Series:
        """
        Predict the ``classe`` letter of each row.

        Args:
            data: Cleaned unlabeled table.

        Returns:
            Series of letters A–E indexed like ``data``.
        """
        letters = decode_labels(self.predict_codes(data), index=data.index)
        letters.name = config.TARGET_COLUMN

        logger.info(f"Predictions complete for {len(data)} row(s)")

        return letters

    def predict_frame(self, data: pd.DataFrame) -> pd.DataFrame:
        """
        Predictions paired with the row identifier.

        Returns:
            DataFrame with ``problem_id`` (row position + 1 if the column is
            absent) and ``classe``.
        """
        letters = self.predict(data)
        if config.ID_COLUMN in data.columns:
            ids = data[config.ID_COLUMN].to_numpy()
        else:
            ids = np.arange(1, len(data) + 1)

        return pd.DataFrame({
            config.ID_COLUMN: ids,
            config.TARGET_COLUMN: letters.to_numpy(),
        })
