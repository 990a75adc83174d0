"""
Weight Lifting Exercise Quality Report - Main Pipeline

Runs the seven report stages in order: load, clean, split, search, train,
evaluate, predict, then renders the report.

Usage:
    python run_pipeline.py
"""
import pandas as pd
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from xgboost import XGBClassifier

from activity_model import config
from activity_model.feature_pipeline.load import load_datasets
from activity_model.feature_pipeline.cleaning import clean_datasets
from activity_model.training_pipeline.train import (
    separate_features_target,
    split_fit_holdout,
    train_final_model
)
from activity_model.training_pipeline.search import SearchResult, run_search
from activity_model.training_pipeline.evaluation import (
    evaluate_model,
    get_feature_importance,
    render_trees
)
from activity_model.inference_pipeline.predict import ActivityPredictor
from activity_model.utils.report import (
    write_evaluation_artifacts,
    write_report,
    write_search_summary
)

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything the report is built from."""
    search_result: SearchResult
    model: XGBClassifier
    metrics: Dict[str, Any]
    importance: pd.DataFrame
    trees: List[str]
    predictions: pd.DataFrame
    report_path: Optional[Path] = None


def run_report_pipeline(
    train_df: Optional[pd.DataFrame] = None,
    test_df: Optional[pd.DataFrame] = None,
    n_trials: Optional[int] = None,
    seed: Optional[int] = None,
    report_dir: Optional[Path] = None,
    write_outputs: bool = True,
    **search_kwargs
) -> PipelineResult:
    """
    Execute the complete report pipeline.

    Pipeline:
    1. Load raw tables (downloaded if not cached)
    2. Clean and align both tables
    3. Stratified fit/hold-out split
    4. Randomized cross-validated hyperparameter search
    5. Train the final model
    6. Evaluate on the hold-out partition
    7. Predict the unlabeled table

    Args:
        train_df: Raw training table. If None, loaded from config paths.
        test_df: Raw testing table. If None, loaded from config paths.
        n_trials: Search trials. If None, uses config.N_TRIALS.
        seed: Seed for the split and the search. If None, uses config.RANDOM_STATE.
        report_dir: Where to write the report. If None, uses config.REPORT_DIR.
        write_outputs: If False, skip writing the report. Otherwise each
            stage writes its artifacts as soon as it finishes.
        **search_kwargs: Forwarded to run_search (nfold, num_boost_round,
            early_stopping_rounds).

    Returns:
        PipelineResult with the search, model, metrics, and predictions.
    """
    if seed is None:
        seed = config.RANDOM_STATE

    logger.info("=" * 80)
    logger.info("WEIGHT LIFTING EXERCISE QUALITY REPORT")
    logger.info("=" * 80)

    # Step 1: Load data
    logger.info("\n[1/7] Loading raw data...")
    if train_df is None or test_df is None:
        train_df, test_df = load_datasets()

    # Step 2: Clean
    logger.info("\n[2/7] Cleaning tables...")
    train_clean, test_clean = clean_datasets(train_df, test_df)
    X, y = separate_features_target(train_clean)

    # Step 3: Split
    logger.info("\n[3/7] Splitting fit/hold-out...")
    X_fit, X_holdout, y_fit, y_holdout = split_fit_holdout(X, y, random_state=seed)

    # Step 4: Search
    logger.info("\n[4/7] Running hyperparameter search...")
    search_result = run_search(X_fit, y_fit, n_trials=n_trials, seed=seed, **search_kwargs)
    if write_outputs:
        write_search_summary(search_result, report_dir=report_dir)

    # Step 5: Train
    logger.info("\n[5/7] Training final model...")
    model = train_final_model(X_fit, y_fit, search_result)

    # Step 6: Evaluate
    logger.info("\n[6/7] Evaluating on hold-out partition...")
    metrics = evaluate_model(model, X_holdout, y_holdout)
    importance = get_feature_importance(model, X_fit.columns)
    trees = render_trees(model)
    if write_outputs:
        write_evaluation_artifacts(metrics, importance, trees, report_dir=report_dir)

    # Step 7: Predict
    logger.info("\n[7/7] Predicting unlabeled table...")
    predictor = ActivityPredictor(model, X_fit.columns.tolist())
    predictions = predictor.predict_frame(test_clean)

    result = PipelineResult(
        search_result=search_result,
        model=model,
        metrics=metrics,
        importance=importance,
        trees=trees,
        predictions=predictions
    )

    if write_outputs:
        result.report_path = write_report(
            search_result, metrics, importance, predictions,
            report_dir=report_dir
        )

    logger.info("\n" + "=" * 80)
    logger.info("✓ REPORT PIPELINE COMPLETE")
    logger.info("=" * 80)
    logger.info(f"Best round: {search_result.best.best_round}")
    logger.info(f"CV error: {search_result.best.error:.4f}")
    logger.info(f"Seed: {search_result.best.seed}")
    logger.info(f"Hold-out accuracy: {metrics['accuracy']:.4f}")
    logger.info(f"Out-of-sample error: {metrics['out_of_sample_error']:.4f}")
    logger.info(f"Predictions: {''.join(predictions[config.TARGET_COLUMN])}")

    return result
