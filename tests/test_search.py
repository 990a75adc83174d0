"""
Hyperparameter search tests: reducer tie-break, trial accounting, fail-fast,
sampling ranges, and a real cross-validated trial.

Run with: pytest tests/test_search.py -v
"""
import dataclasses
import math

import numpy as np
import optuna
import pytest
import xgboost as xgb
from optuna.samplers import RandomSampler

from activity_model import config
from activity_model.feature_pipeline.labels import to_class_index
from activity_model.training_pipeline import search
from activity_model.training_pipeline.search import (
    SENTINEL,
    BoosterConfig,
    TrialResult,
    keep_if_strictly_better,
    run_cv_trial,
    run_search,
    sample_configuration,
)


@pytest.fixture
def booster_config():
    return BoosterConfig(
        max_depth=6, learning_rate=0.3, gamma=0.0, reg_alpha=0.0, reg_lambda=1.0,
        subsample=0.9, colsample_bytree=0.8, min_child_weight=1, max_delta_step=1,
    )


def scripted_trials(monkeypatch, errors, fail_at=None):
    """Replace run_cv_trial with one returning the given errors in order."""
    calls = []

    def fake_run_cv_trial(dtrain, booster_config, seed, **kwargs):
        calls.append((seed, booster_config))
        if fail_at is not None and len(calls) == fail_at:
            raise RuntimeError("boosting failed")
        return TrialResult(
            config=booster_config,
            best_round=len(calls),
            error=errors[len(calls) - 1],
            seed=seed,
        )

    monkeypatch.setattr(search, "run_cv_trial", fake_run_cv_trial)
    return calls


class TestReducer:
    """keep_if_strictly_better."""

    def test_improvement_replaces(self, booster_config):
        best = TrialResult(booster_config, 10, 0.2, 1)
        candidate = TrialResult(booster_config, 12, 0.1, 2)
        assert keep_if_strictly_better(best, candidate) is candidate

    def test_tie_keeps_first(self, booster_config):
        best = TrialResult(booster_config, 10, 0.2, 1)
        candidate = TrialResult(booster_config, 12, 0.2, 2)
        assert keep_if_strictly_better(best, candidate) is best

    def test_worse_is_ignored(self, booster_config):
        best = TrialResult(booster_config, 10, 0.2, 1)
        candidate = TrialResult(booster_config, 12, 0.3, 2)
        assert keep_if_strictly_better(best, candidate) is best

    def test_sentinel_replaced_by_any_finite_error(self, booster_config):
        candidate = TrialResult(booster_config, 1, 0.99, 5)
        assert SENTINEL.error == math.inf
        assert keep_if_strictly_better(SENTINEL, candidate) is candidate

    def test_nan_never_wins(self, booster_config):
        candidate = TrialResult(booster_config, 1, float("nan"), 5)
        assert keep_if_strictly_better(SENTINEL, candidate) is SENTINEL


class TestRunSearch:
    """run_search with scripted trial outcomes."""

    def test_runs_exactly_n_trials(self, monkeypatch, fit_data):
        X, y = fit_data
        calls = scripted_trials(monkeypatch, [0.3, 0.5, 0.4, 0.6, 0.7, 0.3, 0.2])

        result = run_search(X, y, n_trials=7, seed=5)

        assert len(calls) == 7
        assert result.n_trials == 7
        assert len(result.best_error_history) == 7

    def test_best_error_non_increasing(self, monkeypatch, fit_data):
        X, y = fit_data
        scripted_trials(monkeypatch, [0.3, 0.2, 0.2, 0.25, 0.1])

        result = run_search(X, y, n_trials=5, seed=5)

        assert result.best_error_history == [0.3, 0.2, 0.2, 0.2, 0.1]
        assert all(a >= b for a, b in zip(result.best_error_history, result.best_error_history[1:]))
        assert result.best is result.trials[4]

    def test_tie_keeps_earliest_trial(self, monkeypatch, fit_data):
        X, y = fit_data
        scripted_trials(monkeypatch, [0.4, 0.1, 0.3, 0.1])

        result = run_search(X, y, n_trials=4, seed=5)

        assert result.best is result.trials[1]
        assert result.best.best_round == 2

    def test_failure_propagates_without_retry(self, monkeypatch, fit_data):
        X, y = fit_data
        calls = scripted_trials(monkeypatch, [0.3, 0.2, 0.1], fail_at=2)

        with pytest.raises(RuntimeError, match="boosting failed"):
            run_search(X, y, n_trials=3, seed=5)

        assert len(calls) == 2

    def test_same_seed_same_trials(self, monkeypatch, fit_data):
        X, y = fit_data
        first = scripted_trials(monkeypatch, [0.5] * 4)
        run_search(X, y, n_trials=4, seed=9)
        second = scripted_trials(monkeypatch, [0.5] * 4)
        run_search(X, y, n_trials=4, seed=9)

        assert first == second

    def test_trial_seeds_within_range(self, monkeypatch, fit_data):
        X, y = fit_data
        calls = scripted_trials(monkeypatch, [0.5] * 6)
        run_search(X, y, n_trials=6, seed=3)

        low, high = config.TRIAL_SEED_RANGE
        assert all(low <= seed <= high for seed, _ in calls)

    def test_all_nan_errors_raise(self, monkeypatch, fit_data):
        X, y = fit_data
        scripted_trials(monkeypatch, [float("nan")] * 3)

        with pytest.raises(ValueError, match="No trial"):
            run_search(X, y, n_trials=3, seed=5)

    def test_rejects_zero_trials(self, fit_data):
        X, y = fit_data
        with pytest.raises(ValueError):
            run_search(X, y, n_trials=0)

    def test_summary_frame(self, monkeypatch, fit_data):
        X, y = fit_data
        scripted_trials(monkeypatch, [0.3, 0.1])

        summary = run_search(X, y, n_trials=2, seed=5).summary_frame()

        assert summary.columns.tolist() == ["best_round", "cv_error", "seed"]
        assert summary.loc[0, "best_round"] == 2
        assert summary.loc[0, "cv_error"] == pytest.approx(0.1)


class TestSampling:
    """sample_configuration."""

    def test_fixed_trial(self, booster_config):
        trial = optuna.trial.FixedTrial(booster_config.to_params())
        assert sample_configuration(trial) == booster_config

    def test_values_within_bounds(self):
        study = optuna.create_study(sampler=RandomSampler(seed=0))
        for _ in range(25):
            params = sample_configuration(study.ask()).to_params()
            for name, (low, high) in config.SEARCH_SPACE.items():
                assert low <= params[name] <= high, name
                if name in config.INTEGER_PARAMS:
                    assert isinstance(params[name], int), name

    def test_config_is_immutable(self, booster_config):
        with pytest.raises(dataclasses.FrozenInstanceError):
            booster_config.max_depth = 3


class TestCrossValidatedTrial:
    """run_cv_trial against real xgboost.cv."""

    def test_reports_minimum_error_and_round(self, fit_data, booster_config):
        X, y = fit_data
        dtrain = xgb.DMatrix(X, label=to_class_index(y))

        result = run_cv_trial(
            dtrain, booster_config, seed=17,
            nfold=3, num_boost_round=15, early_stopping_rounds=3,
        )

        assert result.config == booster_config
        assert result.seed == 17
        assert 1 <= result.best_round <= 15
        assert 0.0 <= result.error < 0.2

        cv = xgb.cv(
            {**config.BASE_XGB_PARAMS, **booster_config.to_params(), "seed": 17},
            dtrain, num_boost_round=15, nfold=3, stratified=True,
            early_stopping_rounds=3, seed=17, verbose_eval=False,
        )
        errors = cv[f"test-{config.CV_METRIC}-mean"].to_numpy()
        assert result.error == pytest.approx(errors.min())
        assert result.best_round == int(np.argmin(errors)) + 1

    def test_real_search(self, fit_data, small_leaf_weight):
        X, y = fit_data
        result = run_search(
            X, y, n_trials=2, seed=1,
            nfold=3, num_boost_round=10, early_stopping_rounds=3,
        )
        assert result.n_trials == 2
        assert result.best.error == min(t.error for t in result.trials)
