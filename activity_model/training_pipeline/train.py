"""
Final model training module for the activity classifier.

Separates features from labels, performs the stratified fit/hold-out split,
and refits a single XGBoost classifier with the configuration chosen by the
randomized search.
"""
import pandas as pd
import logging
from sklearn.model_selection import train_test_split
from xgboost import XGBClassifier
from typing import Optional, Tuple

from activity_model import config
from activity_model.feature_pipeline.labels import encode_labels, to_class_index
from activity_model.training_pipeline.search import SearchResult

logger = logging.getLogger(__name__)


def separate_features_target(
    df: pd.DataFrame,
    target_column: Optional[str] = None
) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Split a cleaned labeled table into features (X) and label codes (y).

    Returns:
        Tuple of (X, y) where y holds codes 1..5 for classes A..E.

    Raises:
        KeyError: If the label column is missing.
    """
    if target_column is None:
        target_column = config.TARGET_COLUMN

    if target_column not in df.columns:
        raise KeyError(f"Target column '{target_column}' not found in data")

    y = encode_labels(df[target_column])
    X = df.drop(columns=[target_column])

    logger.info(f"Data prepared: X shape = {X.shape}, y shape = {y.shape}")
    counts = y.value_counts().sort_index()
    logger.info(
        "Class distribution: " +
        ", ".join(f"{code}={n:,}" for code, n in counts.items())
    )

    return X, y


def split_fit_holdout(
    X: pd.DataFrame,
    y: pd.Series,
    fit_fraction: Optional[float] = None,
    random_state: Optional[int] = None
) -> Tuple[pd.DataFrame, pd.DataFrame, pd.Series, pd.Series]:
    """
    Perform a stratified fit/hold-out split.

    Every class keeps approximately ``fit_fraction`` of its rows in the fit
    partition. Identical inputs and seed give an identical partition.

    Args:
        X: Feature matrix.
        y: Label codes.
        fit_fraction: Fraction of rows for fitting. If None, uses config.FIT_FRACTION.
        random_state: Random seed. If None, uses config.RANDOM_STATE.

    Returns:
        Tuple of (X_fit, X_holdout, y_fit, y_holdout).

    Example:
        >>> X_fit, X_holdout, y_fit, y_holdout = split_fit_holdout(X, y)
        >>> print(X_fit.shape)
        (13735, 52)
    """
    if fit_fraction is None:
        fit_fraction = config.FIT_FRACTION
    if random_state is None:
        random_state = config.RANDOM_STATE

    X_fit, X_holdout, y_fit, y_holdout = train_test_split(
        X, y,
        train_size=fit_fraction,
        random_state=random_state,
        stratify=y  # Maintain class distribution
    )

    logger.info(f"Fit/hold-out split complete:")
    logger.info(f"  Fit: {X_fit.shape[0]:,} samples")
    logger.info(f"  Hold-out: {X_holdout.shape[0]:,} samples")

    return X_fit, X_holdout, y_fit, y_holdout


def train_final_model(
    X_fit: pd.DataFrame,
    y_fit: pd.Series,
    search_result: SearchResult
) -> XGBClassifier:
    """
    Refit one classifier on the whole fit partition with the winning trial.

    The model is boosted for exactly the winning trial's round count and
    seeded with its seed, so the fit is deterministic.

    Args:
        X_fit: Fit-partition features.
        y_fit: Fit-partition label codes.
        search_result: Completed search.

    Returns:
        Trained XGBoost classifier.
    """
    best = search_result.best
    logger.info(
        f"Training final model: {best.best_round} rounds, seed {best.seed}..."
    )

    model = XGBClassifier(
        **best.config.to_params(),
        n_estimators=best.best_round,
        objective=config.BASE_XGB_PARAMS['objective'],
        eval_metric=config.CV_METRIC,
        importance_type='total_gain',
        random_state=best.seed,
        n_jobs=config.N_THREADS,
        verbosity=0
    )

    model.fit(X_fit, to_class_index(y_fit))

    logger.info("✓ Final model trained successfully")

    return model
