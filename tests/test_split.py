"""
Fit/hold-out split tests: determinism, coverage, and stratification.

Run with: pytest tests/test_split.py -v
"""
import numpy as np
import pandas as pd
import pytest

from activity_model.training_pipeline.train import (
    separate_features_target,
    split_fit_holdout,
)
from activity_model import config


@pytest.fixture
def imbalanced_data():
    """1,000 rows with unequal class sizes."""
    rng = np.random.default_rng(7)
    sizes = {1: 350, 2: 250, 3: 200, 4: 120, 5: 80}
    y = pd.Series(np.concatenate([[code] * n for code, n in sizes.items()]))
    y = y.sample(frac=1.0, random_state=0).reset_index(drop=True)
    X = pd.DataFrame({"a": rng.normal(size=len(y)), "b": rng.normal(size=len(y))})
    return X, y


class TestSplit:
    """Stratified, seeded partitioning."""

    def test_deterministic(self, imbalanced_data):
        X, y = imbalanced_data
        first = split_fit_holdout(X, y, fit_fraction=0.7, random_state=11)
        second = split_fit_holdout(X, y, fit_fraction=0.7, random_state=11)

        assert first[0].index.tolist() == second[0].index.tolist()
        assert first[1].index.tolist() == second[1].index.tolist()

    def test_different_seed_changes_partition(self, imbalanced_data):
        X, y = imbalanced_data
        X_fit_a, _, _, _ = split_fit_holdout(X, y, random_state=1)
        X_fit_b, _, _, _ = split_fit_holdout(X, y, random_state=2)
        assert set(X_fit_a.index) != set(X_fit_b.index)

    def test_disjoint_and_complete(self, imbalanced_data):
        X, y = imbalanced_data
        X_fit, X_holdout, y_fit, y_holdout = split_fit_holdout(X, y)

        fit_rows, holdout_rows = set(X_fit.index), set(X_holdout.index)
        assert fit_rows.isdisjoint(holdout_rows)
        assert fit_rows | holdout_rows == set(X.index)
        assert y_fit.index.tolist() == X_fit.index.tolist()
        assert y_holdout.index.tolist() == X_holdout.index.tolist()

    def test_stratified_per_class(self, imbalanced_data):
        X, y = imbalanced_data
        _, _, y_fit, _ = split_fit_holdout(X, y, fit_fraction=0.7)

        totals = y.value_counts()
        fit_counts = y_fit.value_counts()
        for code, total in totals.items():
            ratio = fit_counts[code] / total
            assert abs(ratio - 0.7) <= 0.02, f"class {code}: fit ratio {ratio:.3f}"


class TestSeparateFeaturesTarget:

    def test_encodes_labels(self):
        df = pd.DataFrame({"f": [1.0, 2.0, 3.0], config.TARGET_COLUMN: ["A", "E", "C"]})
        X, y = separate_features_target(df)
        assert X.columns.tolist() == ["f"]
        assert y.tolist() == [1, 5, 3]

    def test_missing_target(self):
        with pytest.raises(KeyError):
            separate_features_target(pd.DataFrame({"f": [1.0]}))
