"""
Randomized hyperparameter search for the activity classifier.

Each trial draws a per-trial seed and an independent uniform sample of the
XGBoost search space, runs k-fold cross-validated boosting with early
stopping, and reports the lowest mean held-out multi-class error together
with the round that reached it. Trials are folded into a single best result
that only changes on strict improvement, so among equal errors the earliest
trial wins.
"""
import math
import pandas as pd
import numpy as np
import logging
from dataclasses import dataclass, asdict, field
from itertools import accumulate
from typing import Dict, Iterator, List, Optional

import optuna
from optuna.samplers import RandomSampler
from optuna.trial import TrialState
import xgboost as xgb

from activity_model import config
from activity_model.feature_pipeline.labels import to_class_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoosterConfig:
    """One sampled point of the search space."""
    max_depth: int
    learning_rate: float
    gamma: float
    reg_alpha: float
    reg_lambda: float
    subsample: float
    colsample_bytree: float
    min_child_weight: int
    max_delta_step: int

    def to_params(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class TrialResult:
    """Outcome of one cross-validated trial."""
    config: Optional[BoosterConfig]
    best_round: Optional[int]
    error: float
    seed: Optional[int]


# Starting point of the fold; any finite error replaces it
SENTINEL = TrialResult(config=None, best_round=None, error=math.inf, seed=None)


@dataclass
class SearchResult:
    """
    Result of a completed search.

    Attributes:
        best: Winning trial.
        trials: Every trial in the order it ran.
        best_error_history: Best error after each trial (non-increasing).
    """
    best: TrialResult
    trials: List[TrialResult] = field(default_factory=list)
    best_error_history: List[float] = field(default_factory=list)

    @property
    def n_trials(self) -> int:
        return len(self.trials)

    def summary_frame(self) -> pd.DataFrame:
        """One-row table of {best_round, cv_error, seed}."""
        return pd.DataFrame([{
            'best_round': self.best.best_round,
            'cv_error': self.best.error,
            'seed': self.best.seed,
        }])

    def trials_frame(self) -> pd.DataFrame:
        """All trials with their sampled parameters."""
        rows = []
        for number, trial in enumerate(self.trials, start=1):
            row = {'trial': number, 'seed': trial.seed,
                   'best_round': trial.best_round, 'cv_error': trial.error}
            row.update(trial.config.to_params())
            rows.append(row)
        return pd.DataFrame(rows)


def keep_if_strictly_better(best: TrialResult, candidate: TrialResult) -> TrialResult:
    """Return ``candidate`` only if its error is strictly lower than ``best``'s."""
    if candidate.error < best.error:
        return candidate
    return best


def sample_configuration(trial: optuna.trial.BaseTrial) -> BoosterConfig:
    """
    Draw a BoosterConfig from config.SEARCH_SPACE.

    Integer fields use ``suggest_int`` and the rest ``suggest_float``; with a
    RandomSampler every field is drawn independently and uniformly.

    Args:
        trial: Optuna trial (or FixedTrial in tests).

    Returns:
        Sampled configuration.

    Example:
        >>> study = optuna.create_study(sampler=RandomSampler(seed=1))
        >>> booster_config = sample_configuration(study.ask())
    """
    params = {}
    for name, (low, high) in config.SEARCH_SPACE.items():
        if name in config.INTEGER_PARAMS:
            params[name] = trial.suggest_int(name, int(low), int(high))
        else:
            params[name] = trial.suggest_float(name, float(low), float(high))
    return BoosterConfig(**params)


def run_cv_trial(
    dtrain: xgb.DMatrix,
    booster_config: BoosterConfig,
    seed: int,
    nfold: Optional[int] = None,
    num_boost_round: Optional[int] = None,
    early_stopping_rounds: Optional[int] = None
) -> TrialResult:
    """
    Run one k-fold cross-validated boosting trial.

    Args:
        dtrain: Training matrix with zero-based class labels.
        booster_config: Sampled hyperparameters.
        seed: Seed for fold assignment and boosting randomness.
        nfold: Number of folds. If None, uses config.CV_FOLDS.
        num_boost_round: Round cap. If None, uses config.MAX_BOOST_ROUNDS.
        early_stopping_rounds: Patience. If None, uses config.EARLY_STOPPING_ROUNDS.

    Returns:
        TrialResult with the minimum mean held-out error and its 1-based round.
    """
    if nfold is None:
        nfold = config.CV_FOLDS
    if num_boost_round is None:
        num_boost_round = config.MAX_BOOST_ROUNDS
    if early_stopping_rounds is None:
        early_stopping_rounds = config.EARLY_STOPPING_ROUNDS

    params = {
        **config.BASE_XGB_PARAMS,
        **booster_config.to_params(),
        'seed': seed,
    }

    cv_results = xgb.cv(
        params,
        dtrain,
        num_boost_round=num_boost_round,
        nfold=nfold,
        stratified=True,
        early_stopping_rounds=early_stopping_rounds,
        seed=seed,
        verbose_eval=False
    )

    errors = cv_results[f"test-{config.CV_METRIC}-mean"].to_numpy()
    best_index = int(np.argmin(errors))  # first minimum

    return TrialResult(
        config=booster_config,
        best_round=best_index + 1,
        error=float(errors[best_index]),
        seed=seed
    )


def _iter_trials(
    dtrain: xgb.DMatrix,
    n_trials: int,
    seed: int,
    **cv_kwargs
) -> Iterator[TrialResult]:
    """Yield trial results lazily; a failing trial aborts the iteration."""
    study = optuna.create_study(direction='minimize', sampler=RandomSampler(seed=seed))
    seed_rng = np.random.default_rng(seed)
    low, high = config.TRIAL_SEED_RANGE

    for number in range(1, n_trials + 1):
        trial_seed = int(seed_rng.integers(low, high, endpoint=True))
        trial = study.ask()
        booster_config = sample_configuration(trial)

        try:
            result = run_cv_trial(dtrain, booster_config, trial_seed, **cv_kwargs)
        except Exception as e:
            logger.error(f"Trial {number}/{n_trials} failed (seed {trial_seed}): {e}")
            study.tell(trial, state=TrialState.FAIL)
            raise

        if math.isnan(result.error):
            study.tell(trial, state=TrialState.FAIL)
        else:
            study.tell(trial, result.error)

        logger.info(
            f"Trial {number}/{n_trials}: {config.CV_METRIC}={result.error:.4f} "
            f"at round {result.best_round} (seed {trial_seed})"
        )
        yield result


def run_search(
    X: pd.DataFrame,
    y: pd.Series,
    n_trials: Optional[int] = None,
    seed: Optional[int] = None,
    nfold: Optional[int] = None,
    num_boost_round: Optional[int] = None,
    early_stopping_rounds: Optional[int] = None
) -> SearchResult:
    """
    Run the randomized cross-validated search.

    A master seed drives both the per-trial seed stream and the parameter
    sampler, so identical inputs reproduce the same trials. Exactly
    ``n_trials`` trials run; a failing trial is not retried and its
    exception propagates.

    Args:
        X: Fit-partition features.
        y: Fit-partition label codes (1..K).
        n_trials: Number of trials. If None, uses config.N_TRIALS.
        seed: Master seed. If None, uses config.RANDOM_STATE.
        nfold: Number of CV folds. If None, uses config.CV_FOLDS.
        num_boost_round: Round cap per trial. If None, uses config.MAX_BOOST_ROUNDS.
        early_stopping_rounds: Patience. If None, uses config.EARLY_STOPPING_ROUNDS.

    Returns:
        SearchResult with the winning trial and the trial history.

    Raises:
        ValueError: If n_trials < 1 or no trial produced a finite error.

    Example:
        >>> result = run_search(X_fit, y_fit)
        >>> print(result.best.best_round, f"{result.best.error:.4f}")
        187 0.0051
    """
    if n_trials is None:
        n_trials = config.N_TRIALS
    if seed is None:
        seed = config.RANDOM_STATE
    if n_trials < 1:
        raise ValueError(f"n_trials must be at least 1, got {n_trials}")

    logger.info("=" * 80)
    logger.info("RANDOMIZED HYPERPARAMETER SEARCH")
    logger.info("=" * 80)
    logger.info(f"Objective: Minimize CV {config.CV_METRIC}")
    logger.info(f"Number of trials: {n_trials}")
    logger.info(f"CV folds: {nfold or config.CV_FOLDS}")

    dtrain = xgb.DMatrix(X, label=to_class_index(y))

    results = list(_iter_trials(
        dtrain, n_trials, seed,
        nfold=nfold,
        num_boost_round=num_boost_round,
        early_stopping_rounds=early_stopping_rounds
    ))

    running_best = list(accumulate(results, keep_if_strictly_better, initial=SENTINEL))[1:]

    best = running_best[-1]
    if best.config is None:
        raise ValueError(f"No trial produced a finite {config.CV_METRIC} in {n_trials} trials")

    logger.info("\n✓ Search complete")
    logger.info(f"Best CV {config.CV_METRIC}: {best.error:.4f}")
    logger.info(f"Best round: {best.best_round}")
    logger.info(f"Best seed: {best.seed}")
    logger.info("Best parameters:")
    for param, value in best.config.to_params().items():
        logger.info(f"  {param:20s}: {value}")

    return SearchResult(
        best=best,
        trials=results,
        best_error_history=[t.error for t in running_best]
    )
