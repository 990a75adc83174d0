"""
Model evaluation module for the activity classifier.

Provides:
- Hold-out accuracy and out-of-sample error
- Confusion matrix (table and heatmap)
- Total-gain feature importance ranking and chart
- Text rendering of the first trees in the ensemble
"""
import pandas as pd
import numpy as np
import logging
from sklearn.metrics import accuracy_score, confusion_matrix
from typing import Any, Dict, List, Optional, Tuple
import matplotlib.pyplot as plt
import seaborn as sns

from activity_model import config
from activity_model.feature_pipeline.labels import CODE_TO_LABEL, from_class_index

logger = logging.getLogger(__name__)


def accuracy_from_confusion(matrix) -> float:
    """Fraction of observations on the diagonal of a confusion matrix."""
    matrix = np.asarray(matrix)
    total = matrix.sum()
    if total == 0:
        raise ValueError("Confusion matrix is empty")
    return float(np.trace(matrix) / total)


def evaluate_model(
    model: Any,
    X_holdout: pd.DataFrame,
    y_holdout: pd.Series
) -> Dict[str, Any]:
    """
    Evaluate the classifier on the hold-out partition.

    Args:
        model: Trained classifier whose predict() returns zero-based class indices.
        X_holdout: Hold-out features.
        y_holdout: Hold-out label codes (1..K).

    Returns:
        Dictionary with:
        - predictions: predicted label codes, aligned with y_holdout
        - accuracy: fraction of exact matches
        - out_of_sample_error: 1 - accuracy
        - confusion_matrix: DataFrame indexed by true letter, columns by predicted letter

    Example:
        >>> metrics = evaluate_model(model, X_holdout, y_holdout)
        >>> print(f"Accuracy: {metrics['accuracy']:.4f}")
        Accuracy: 0.9961
    """
    logger.info("Evaluating model on hold-out partition...")

    predictions = pd.Series(
        from_class_index(model.predict(X_holdout)),
        index=y_holdout.index,
        name='predicted'
    )

    codes = list(CODE_TO_LABEL.keys())
    letters = [CODE_TO_LABEL[c] for c in codes]
    matrix = pd.DataFrame(
        confusion_matrix(y_holdout, predictions, labels=codes),
        index=pd.Index(letters, name='actual'),
        columns=pd.Index(letters, name='predicted')
    )

    accuracy = accuracy_score(y_holdout, predictions)

    metrics = {
        'predictions': predictions,
        'accuracy': float(accuracy),
        'out_of_sample_error': float(1.0 - accuracy),
        'confusion_matrix': matrix,
    }

    logger.info("Evaluation metrics:")
    logger.info(f"  {'accuracy':20s}: {metrics['accuracy']:.4f}")
    logger.info(f"  {'out_of_sample_error':20s}: {metrics['out_of_sample_error']:.4f}")

    return metrics


def get_feature_importance(
    model: Any,
    feature_names: List[str],
    top_n: Optional[int] = None
) -> pd.DataFrame:
    """
    Extract and rank feature importances from model.

    For the final classifier the scores are XGBoost's total gain: the
    split-loss reduction summed over every split on the feature.

    Args:
        model: Trained model with feature_importances_ attribute.
        feature_names: List of feature names.
        top_n: Number of top features to return. If None, uses config.TOP_N_FEATURES.

    Returns:
        DataFrame with features and their importance scores, sorted descending.

    Example:
        >>> importance_df = get_feature_importance(model, X_fit.columns)
        >>> print(importance_df.head(3))
    """
    if top_n is None:
        top_n = config.TOP_N_FEATURES

    if not hasattr(model, 'feature_importances_'):
        logger.warning("Model does not have feature_importances_ attribute")
        return pd.DataFrame(columns=['feature', 'importance'])

    importance_df = pd.DataFrame({
        'feature': list(feature_names),
        'importance': model.feature_importances_
    }).sort_values(
        'importance', ascending=False, kind='mergesort'
    ).head(top_n).reset_index(drop=True)

    logger.info(f"Top {len(importance_df)} feature importances extracted")

    return importance_df


def plot_feature_importance(
    importance_df: pd.DataFrame,
    title: str = "Top 10 Feature Importances",
    figsize: Tuple[int, int] = (10, 6),
    save_path: Optional[str] = None
) -> None:
    """
    Plot feature importance bar chart.

    Args:
        importance_df: DataFrame with 'feature' and 'importance' columns.
        title: Plot title.
        figsize: Figure size (width, height).
        save_path: If provided, save plot to this path.
    """
    fig, ax = plt.subplots(figsize=figsize)

    colors = plt.cm.Blues(np.linspace(0.4, 0.8, len(importance_df)))

    ax.barh(
        range(len(importance_df)),
        importance_df['importance'].values,
        color=colors
    )
    ax.set_yticks(range(len(importance_df)))
    ax.set_yticklabels(importance_df['feature'].values)
    ax.invert_yaxis()
    ax.set_xlabel('Total Gain (normalised)', fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.grid(True, alpha=0.3, axis='x')

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info(f"Feature importance plot saved to: {save_path}")

    plt.close(fig)


def plot_confusion_matrix(
    matrix: pd.DataFrame,
    title: str = "Hold-out Confusion Matrix",
    figsize: Tuple[int, int] = (7, 6),
    save_path: Optional[str] = None
) -> None:
    """Heatmap of a confusion matrix (rows actual, columns predicted)."""
    fig, ax = plt.subplots(figsize=figsize)

    sns.heatmap(matrix, annot=True, fmt='d', cmap='Blues', cbar=False, ax=ax)
    ax.set_xlabel('Predicted classe', fontsize=12)
    ax.set_ylabel('Actual classe', fontsize=12)
    ax.set_title(title, fontsize=14)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info(f"Confusion matrix plot saved to: {save_path}")

    plt.close(fig)


def render_trees(model: Any, n_trees: Optional[int] = None) -> List[str]:
    """
    Text dumps of the first trees in the ensemble, with split statistics.

    For a multi-class model each boosting round adds one tree per class, so
    the first trees belong to the first round.
    """
    if n_trees is None:
        n_trees = config.N_TREES_TO_RENDER

    dumps = model.get_booster().get_dump(with_stats=True)
    logger.info(f"Rendering {min(n_trees, len(dumps))} of {len(dumps)} trees")

    return dumps[:n_trees]
