"""
Report rendering for the activity pipeline.

Artifacts are written as soon as the stage producing them finishes, so a
failure later in the run leaves the earlier outputs on disk:
- after the search: the trial table
- after evaluation: importance chart, confusion-matrix heatmap, tree dumps
- after prediction: predictions CSV and the Markdown report
"""
import pandas as pd
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from activity_model import config
from activity_model.training_pipeline.evaluation import (
    plot_confusion_matrix,
    plot_feature_importance
)
from activity_model.training_pipeline.search import SearchResult

logger = logging.getLogger(__name__)


def _resolve_report_dir(report_dir: Optional[Path]) -> Path:
    if report_dir is None:
        report_dir = config.REPORT_DIR
    report_dir = Path(report_dir)
    report_dir.mkdir(parents=True, exist_ok=True)
    return report_dir


def write_search_summary(
    search_result: SearchResult,
    report_dir: Optional[Path] = None
) -> Path:
    """Write every trial (seed, round, CV error, parameters) to CSV."""
    report_dir = _resolve_report_dir(report_dir)
    trials_path = report_dir / config.SEARCH_TRIALS_FILENAME

    search_result.trials_frame().to_csv(trials_path, index=False)
    logger.info(f"Search trials saved to: {trials_path}")

    return trials_path


def write_evaluation_artifacts(
    metrics: Dict[str, Any],
    importance_df: pd.DataFrame,
    trees: List[str],
    report_dir: Optional[Path] = None
) -> None:
    """
    Write the importance chart, confusion-matrix heatmap, and tree dumps.

    Args:
        metrics: Output of evaluate_model().
        importance_df: Ranked feature importances.
        trees: Text dumps from render_trees().
        report_dir: Output directory. If None, uses config.REPORT_DIR.
    """
    report_dir = _resolve_report_dir(report_dir)

    plot_feature_importance(
        importance_df,
        title=f"Top {len(importance_df)} Feature Importances",
        save_path=report_dir / config.FEATURE_IMPORTANCE_PLOT_FILENAME
    )
    plot_confusion_matrix(
        metrics['confusion_matrix'],
        save_path=report_dir / config.CONFUSION_MATRIX_PLOT_FILENAME
    )

    trees_path = report_dir / config.TREES_FILENAME
    trees_path.write_text(
        "\n".join(f"booster[{i}]:\n{dump}" for i, dump in enumerate(trees)),
        encoding="utf-8"
    )
    logger.info(f"Tree dumps saved to: {trees_path}")


def render_markdown(
    search_result: SearchResult,
    metrics: Dict[str, Any],
    importance_df: pd.DataFrame,
    predictions: pd.DataFrame
) -> str:
    """Build the report body."""
    matrix = metrics['confusion_matrix'].reset_index()
    sequence = "".join(predictions[config.TARGET_COLUMN].tolist())
    winning_params = pd.DataFrame([search_result.best.config.to_params()])

    sections = [
        "# Weight Lifting Exercise Quality: Model Report",
        "",
        "## Hyperparameter search",
        "",
        search_result.summary_frame().to_markdown(index=False, floatfmt=".4f"),
        "",
        f"Trials run: {search_result.n_trials} "
        f"(all trials in `{config.SEARCH_TRIALS_FILENAME}`)",
        "",
        "### Winning configuration",
        "",
        winning_params.to_markdown(index=False, floatfmt=".4f"),
        "",
        "## Hold-out evaluation",
        "",
        f"- Accuracy: {metrics['accuracy']:.4f}",
        f"- Out-of-sample error: {metrics['out_of_sample_error']:.4f}",
        "",
        matrix.to_markdown(index=False),
        "",
        f"![Confusion matrix]({config.CONFUSION_MATRIX_PLOT_FILENAME})",
        "",
        f"## Top {len(importance_df)} features (total gain)",
        "",
        importance_df.to_markdown(index=False, floatfmt=".4f"),
        "",
        f"![Feature importance]({config.FEATURE_IMPORTANCE_PLOT_FILENAME})",
        "",
        "## Ensemble trees",
        "",
        f"The first trees are written to `{config.TREES_FILENAME}`.",
        "",
        "## Test-set predictions",
        "",
        predictions.to_markdown(index=False),
        "",
        f"Sequence: `{sequence}`",
        "",
    ]
    return "\n".join(sections)


def write_report(
    search_result: SearchResult,
    metrics: Dict[str, Any],
    importance_df: pd.DataFrame,
    predictions: pd.DataFrame,
    report_dir: Optional[Path] = None
) -> Path:
    """
    Write the predictions CSV and the Markdown report.

    Args:
        search_result: Completed hyperparameter search.
        metrics: Output of evaluate_model().
        importance_df: Ranked feature importances.
        predictions: ``problem_id``/``classe`` frame.
        report_dir: Output directory. If None, uses config.REPORT_DIR.

    Returns:
        Path to the Markdown report.
    """
    report_dir = _resolve_report_dir(report_dir)

    predictions.to_csv(report_dir / config.PREDICTIONS_FILENAME, index=False)

    report_path = report_dir / config.REPORT_FILENAME
    report_path.write_text(
        render_markdown(search_result, metrics, importance_df, predictions),
        encoding="utf-8"
    )

    logger.info(f"✓ Report written to: {report_path}")

    return report_path
