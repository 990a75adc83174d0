"""
Data cleaning module for the activity report pipeline.

Removes sparse columns and the leading metadata columns, then aligns the
labeled and unlabeled tables on a common feature set.
"""
import pandas as pd
import logging
from typing import List, Optional, Tuple

from activity_model import config

logger = logging.getLogger(__name__)


def missing_fraction(df: pd.DataFrame) -> pd.Series:
    """Per-column fraction of missing entries (0.0 for an empty table)."""
    if len(df) == 0:
        return pd.Series(0.0, index=df.columns)
    return df.isna().mean()


def drop_sparse_columns(
    df: pd.DataFrame,
    threshold: Optional[float] = None
) -> pd.DataFrame:
    """
    Drop columns whose missing fraction is not strictly below ``threshold``.

    A column with exactly ``threshold`` missing is dropped. Re-running on the
    output is a no-op, since every retained column already satisfies the
    condition.

    Args:
        df: Input DataFrame.
        threshold: Missing-fraction cutoff. If None, uses config.MISSING_THRESHOLD.

    Returns:
        DataFrame restricted to the sufficiently populated columns,
        in their original order.

    Example:
        >>> df_dense = drop_sparse_columns(df_raw)
        >>> print(df_dense.shape)
        (19622, 60)
    """
    if threshold is None:
        threshold = config.MISSING_THRESHOLD

    fractions = missing_fraction(df)
    keep = fractions[fractions < threshold].index
    dropped = len(df.columns) - len(keep)

    logger.info(
        f"Dropped {dropped} columns with missing fraction ≥ {threshold:.2%} "
        f"({len(keep)} kept)"
    )

    return df.loc[:, keep].copy()


def drop_metadata_columns(
    df: pd.DataFrame,
    n_columns: Optional[int] = None
) -> pd.DataFrame:
    """
    Drop the leading identifier/user/timestamp/window columns by position.

    Args:
        df: Input DataFrame.
        n_columns: Width of the prefix. If None, uses config.METADATA_COLUMN_COUNT.

    Raises:
        ValueError: If the table has fewer columns than the prefix.
    """
    if n_columns is None:
        n_columns = config.METADATA_COLUMN_COUNT

    if len(df.columns) < n_columns:
        raise ValueError(
            f"Cannot drop {n_columns} metadata columns from a table "
            f"with {len(df.columns)} columns"
        )

    dropped = df.columns[:n_columns].tolist()
    logger.info(f"Dropped metadata columns: {dropped}")

    return df.iloc[:, n_columns:].copy()


def check_metadata_alignment(
    train_df: pd.DataFrame,
    test_df: pd.DataFrame,
    n_columns: Optional[int] = None
) -> List[str]:
    """
    Verify that both tables start with the same metadata columns.

    The prefix is dropped by position, so the two tables must agree on
    what sits in those positions after their independent sparse filtering.

    Returns:
        The shared metadata column names.

    Raises:
        ValueError: If the prefixes differ.
    """
    if n_columns is None:
        n_columns = config.METADATA_COLUMN_COUNT

    train_prefix = train_df.columns[:n_columns].tolist()
    test_prefix = test_df.columns[:n_columns].tolist()

    if train_prefix != test_prefix:
        logger.error(f"Metadata prefix mismatch: {train_prefix} vs {test_prefix}")
        raise ValueError(
            f"Metadata columns differ between tables: "
            f"training={train_prefix}, testing={test_prefix}"
        )

    return train_prefix


def align_feature_columns(
    train_df: pd.DataFrame,
    test_df: pd.DataFrame,
    target_column: Optional[str] = None,
    id_column: Optional[str] = None
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Align the unlabeled table's features to the training table by name.

    Both tables must hold exactly the same feature columns once the label
    (training) and identifier (testing) columns are set aside. The testing
    table is reordered to the training order with its identifier last.

    Args:
        train_df: Cleaned training table, including the label column.
        test_df: Cleaned testing table, including the identifier column.
        target_column: Label column. If None, uses config.TARGET_COLUMN.
        id_column: Identifier column. If None, uses config.ID_COLUMN.

    Returns:
        Tuple of (train_df, aligned_test_df).

    Raises:
        KeyError: If the label or identifier column is missing.
        ValueError: If the feature column sets differ.
    """
    if target_column is None:
        target_column = config.TARGET_COLUMN
    if id_column is None:
        id_column = config.ID_COLUMN

    if target_column not in train_df.columns:
        logger.error(f"Label column '{target_column}' removed or absent after cleaning")
        raise KeyError(f"Column '{target_column}' not found in cleaned training data")
    if id_column not in test_df.columns:
        logger.error(f"Identifier column '{id_column}' removed or absent after cleaning")
        raise KeyError(f"Column '{id_column}' not found in cleaned testing data")

    train_features = [c for c in train_df.columns if c != target_column]
    test_features = [c for c in test_df.columns if c != id_column]

    missing_in_test = sorted(set(train_features) - set(test_features))
    extra_in_test = sorted(set(test_features) - set(train_features))
    if missing_in_test or extra_in_test:
        logger.error(
            f"Feature mismatch: missing in testing={missing_in_test}, "
            f"extra in testing={extra_in_test}"
        )
        raise ValueError(
            f"Feature columns differ between tables "
            f"(missing in testing: {missing_in_test}; extra in testing: {extra_in_test})"
        )

    aligned_test = test_df[train_features + [id_column]].copy()

    logger.info(f"✓ Tables aligned on {len(train_features)} feature columns")

    return train_df, aligned_test


def clean_table(
    df: pd.DataFrame,
    threshold: Optional[float] = None,
    n_metadata: Optional[int] = None
) -> pd.DataFrame:
    """Sparse-column filter followed by metadata-prefix drop for one table."""
    df = drop_sparse_columns(df, threshold)
    return drop_metadata_columns(df, n_metadata)


def clean_datasets(
    train_df: pd.DataFrame,
    test_df: pd.DataFrame,
    threshold: Optional[float] = None,
    n_metadata: Optional[int] = None
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Execute the full cleaning pipeline on both tables.

    Steps:
    1. Drop sparse columns from each table independently
    2. Verify the metadata prefixes agree by name
    3. Drop the metadata prefix from both
    4. Align the testing features to the training features by name

    Args:
        train_df: Raw labeled table.
        test_df: Raw unlabeled table.
        threshold: Missing-fraction cutoff. If None, uses config.MISSING_THRESHOLD.
        n_metadata: Metadata prefix width. If None, uses config.METADATA_COLUMN_COUNT.

    Returns:
        Tuple of (clean_train_df, clean_test_df).

    Example:
        >>> train_clean, test_clean = clean_datasets(train_raw, test_raw)
        >>> print(train_clean.shape, test_clean.shape)
        (19622, 53) (20, 53)
    """
    logger.info("Starting data cleaning pipeline")

    logger.info("Filtering training table...")
    train_dense = drop_sparse_columns(train_df, threshold)
    logger.info("Filtering testing table...")
    test_dense = drop_sparse_columns(test_df, threshold)

    check_metadata_alignment(train_dense, test_dense, n_metadata)

    train_clean = drop_metadata_columns(train_dense, n_metadata)
    test_clean = drop_metadata_columns(test_dense, n_metadata)

    train_clean, test_clean = align_feature_columns(train_clean, test_clean)

    logger.info(
        f"Cleaning complete. Training shape: {train_clean.shape}, "
        f"testing shape: {test_clean.shape}"
    )

    return train_clean, test_clean
