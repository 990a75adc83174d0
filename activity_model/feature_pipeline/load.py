"""
Data loading module for the activity report pipeline.

Handles fetching the raw CSV files when they are not cached locally and
reading them with the dataset's missing-value markers normalised to NaN.
"""
import pandas as pd
import requests
from pathlib import Path
from typing import Optional, Tuple
import logging

from activity_model import config

logger = logging.getLogger(__name__)


def download_dataset(url: str, destination: Path) -> Path:
    """
    Download a CSV file to a local path.

    The file is streamed to a temporary ``.part`` file and renamed once
    complete, so an interrupted download never leaves a truncated CSV
    behind that later runs would treat as cached.

    Args:
        url: Remote location of the CSV file.
        destination: Local path to write to.

    Returns:
        The destination path.

    Raises:
        requests.RequestException: If the file cannot be fetched.
    """
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    partial_path = destination.with_name(destination.name + ".part")

    logger.info(f"Downloading {url} → {destination}")

    try:
        with requests.get(url, stream=True, timeout=config.DOWNLOAD_TIMEOUT) as response:
            response.raise_for_status()
            with open(partial_path, "wb") as fh:
                for chunk in response.iter_content(chunk_size=config.DOWNLOAD_CHUNK_SIZE):
                    fh.write(chunk)
    except requests.RequestException as e:
        logger.error(f"Download failed for {url}: {e}")
        partial_path.unlink(missing_ok=True)
        raise

    partial_path.replace(destination)
    logger.info(f"✓ Saved {destination.stat().st_size:,} bytes to {destination}")

    return destination


def ensure_dataset(file_path: Path, url: Optional[str] = None) -> Path:
    """
    Return a local dataset path, downloading it first if it is missing.

    Args:
        file_path: Expected local path.
        url: Remote fallback. If None the file must already exist.

    Raises:
        FileNotFoundError: If the file is absent and no URL is given.
    """
    file_path = Path(file_path)
    if file_path.exists():
        logger.info(f"Using cached dataset: {file_path}")
        return file_path

    if url is None:
        logger.error(f"File not found: {file_path}")
        raise FileNotFoundError(f"Dataset not found: {file_path}")

    return download_dataset(url, file_path)


def load_raw_data(file_path: Path, url: Optional[str] = None) -> pd.DataFrame:
    """
    Load one raw activity table from CSV.

    Empty strings, ``NA`` and ``#DIV/0!`` are all read as missing. Pandas'
    broader default NA list is switched off so that no other token is
    silently converted.

    Args:
        file_path: Path to the CSV file.
        url: Optional URL to fetch from when the file is absent.

    Returns:
        DataFrame with the raw observations.

    Raises:
        FileNotFoundError: If the CSV file doesn't exist and cannot be fetched.
        pd.errors.EmptyDataError: If the CSV file is empty.

    Example:
        >>> df = load_raw_data(config.TRAINING_DATA_PATH, config.TRAINING_URL)
        >>> print(df.shape)
        (19622, 160)
    """
    file_path = ensure_dataset(file_path, url)

    logger.info(f"Loading raw data from: {file_path}")

    try:
        df = pd.read_csv(
            file_path,
            na_values=config.NA_VALUES,
            keep_default_na=False,
            low_memory=False,
        )
    except pd.errors.EmptyDataError:
        logger.error(f"File is empty: {file_path}")
        raise

    logger.info(f"Loaded {len(df):,} rows × {len(df.columns)} columns")

    return df


def load_datasets(
    training_path: Optional[Path] = None,
    testing_path: Optional[Path] = None,
    download: bool = True
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Load the labeled training table and the unlabeled testing table.

    Args:
        training_path: Training CSV path. If None, uses config.TRAINING_DATA_PATH.
        testing_path: Testing CSV path. If None, uses config.TESTING_DATA_PATH.
        download: If True, fetch missing files from the configured URLs.

    Returns:
        Tuple of (training_df, testing_df).
    """
    if training_path is None:
        training_path = config.TRAINING_DATA_PATH
    if testing_path is None:
        testing_path = config.TESTING_DATA_PATH

    train_df = load_raw_data(training_path, config.TRAINING_URL if download else None)
    test_df = load_raw_data(testing_path, config.TESTING_URL if download else None)

    if train_df.empty:
        raise ValueError(f"Training table has no rows: {training_path}")

    if config.TARGET_COLUMN not in train_df.columns:
        logger.error(f"Label column '{config.TARGET_COLUMN}' missing from {training_path}")
        raise KeyError(f"Column '{config.TARGET_COLUMN}' not found in training data")

    return train_df, test_df
