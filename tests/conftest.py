"""
Shared fixtures: small synthetic tables laid out like the sensor dataset.
"""
import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from activity_model import config

METADATA = [
    "X", "user_name", "raw_timestamp_part_1", "raw_timestamp_part_2",
    "cvtd_timestamp", "new_window", "num_window",
]
FEATURES = ["roll_belt", "pitch_forearm", "magnet_dumbbell_z", "yaw_arm"]
SPARSE = ["kurtosis_roll_belt", "max_picth_belt"]


def make_table(n_rows, seed, labeled=True):
    """
    Build a raw table: 7 metadata columns, 4 features (3 informative),
    2 mostly-missing columns, then ``classe`` or ``problem_id``.

    Returns:
        Tuple of (table, true letters).
    """
    rng = np.random.default_rng(seed)
    codes = rng.permutation(np.arange(n_rows) % config.NUM_CLASSES)
    letters = np.array(list(config.LABEL_ALPHABET))[codes]

    df = pd.DataFrame({
        "X": np.arange(1, n_rows + 1),
        "user_name": rng.choice(["carlitos", "pedro", "adelmo"], size=n_rows),
        "raw_timestamp_part_1": 1323084231 + np.arange(n_rows),
        "raw_timestamp_part_2": rng.integers(0, 999999, size=n_rows),
        "cvtd_timestamp": "05/12/2011 11:23",
        "new_window": "no",
        "num_window": rng.integers(1, 800, size=n_rows),
        "roll_belt": codes * 3.0 + rng.normal(0, 0.3, n_rows),
        "pitch_forearm": -2.0 * codes + rng.normal(0, 0.3, n_rows),
        "magnet_dumbbell_z": codes ** 2 + rng.normal(0, 0.3, n_rows),
        "yaw_arm": rng.normal(0, 1, n_rows),
    })

    for col in SPARSE:
        values = np.full(n_rows, np.nan)
        present = rng.choice(n_rows, size=max(1, n_rows // 50), replace=False)
        values[present] = rng.normal(0, 1, len(present))
        df[col] = values

    if labeled:
        df[config.TARGET_COLUMN] = letters
    else:
        df[config.ID_COLUMN] = np.arange(1, n_rows + 1)

    return df, letters


@pytest.fixture
def raw_tables():
    """Raw (training, testing) tables plus the testing table's true letters."""
    train_df, _ = make_table(500, seed=1, labeled=True)
    test_df, test_letters = make_table(20, seed=2, labeled=False)
    return train_df, test_df, test_letters


@pytest.fixture
def fit_data():
    """Small cleaned feature matrix with label codes 1..5."""
    rng = np.random.default_rng(3)
    codes = rng.permutation(np.arange(300) % config.NUM_CLASSES)
    X = pd.DataFrame({
        "roll_belt": codes * 3.0 + rng.normal(0, 0.3, 300),
        "pitch_forearm": -2.0 * codes + rng.normal(0, 0.3, 300),
        "yaw_arm": rng.normal(0, 1, 300),
    })
    y = pd.Series(codes + 1, name=config.TARGET_COLUMN)
    return X, y


@pytest.fixture
def small_leaf_weight(monkeypatch):
    """Allow splits on tiny synthetic data by capping min_child_weight."""
    monkeypatch.setitem(config.SEARCH_SPACE, "min_child_weight", (1, 2))
