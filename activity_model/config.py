"""
Configuration module for the weight-lifting activity report.

Contains all constants, file paths, column names, and search ranges used
throughout the loading, cleaning, training, and reporting stages.
"""
from pathlib import Path
from typing import Dict, List, Tuple

# ============================================================================
# FILE PATHS
# ============================================================================
PROJECT_ROOT = Path(__file__).parent.parent
RAW_DATA_DIR = PROJECT_ROOT / "data" / "raw"
TRAINING_DATA_PATH = RAW_DATA_DIR / "pml-training.csv"
TESTING_DATA_PATH = RAW_DATA_DIR / "pml-testing.csv"

# Report outputs
REPORT_DIR = PROJECT_ROOT / "reports"
REPORT_FILENAME = "report.md"
FEATURE_IMPORTANCE_PLOT_FILENAME = "feature_importance.png"
CONFUSION_MATRIX_PLOT_FILENAME = "confusion_matrix.png"
SEARCH_TRIALS_FILENAME = "search_trials.csv"
TREES_FILENAME = "trees.txt"
PREDICTIONS_FILENAME = "predictions.csv"

# ============================================================================
# DATA SOURCES
# ============================================================================
TRAINING_URL = "https://d396qusza40orc.cloudfront.net/predmachlearn/pml-training.csv"
TESTING_URL = "https://d396qusza40orc.cloudfront.net/predmachlearn/pml-testing.csv"
DOWNLOAD_TIMEOUT = 60  # seconds
DOWNLOAD_CHUNK_SIZE = 1 << 16

# Tokens read as missing; pandas' default NA list is disabled
NA_VALUES: List[str] = ["", "NA", "#DIV/0!"]

# ============================================================================
# TARGET DEFINITION
# ============================================================================
TARGET_COLUMN = "classe"
ID_COLUMN = "problem_id"
LABEL_ALPHABET = "ABCDE"
LABEL_MAPPING: Dict[str, int] = {
    letter: code for code, letter in enumerate(LABEL_ALPHABET, start=1)
}  # A=1 ... E=5
NUM_CLASSES = len(LABEL_ALPHABET)

# ============================================================================
# DATA CLEANING
# ============================================================================
# Columns at or above this missing fraction are dropped
MISSING_THRESHOLD = 0.05

# Leading columns with no predictive value:
# row index, user_name, raw_timestamp_part_1, raw_timestamp_part_2,
# cvtd_timestamp, new_window, num_window
METADATA_COLUMN_COUNT = 7

# ============================================================================
# TRAINING CONFIGURATION
# ============================================================================
RANDOM_STATE = 42
FIT_FRACTION = 0.7
N_THREADS = 3

# Randomized search
N_TRIALS = 10
CV_FOLDS = 5
MAX_BOOST_ROUNDS = 200
EARLY_STOPPING_ROUNDS = 8
TRIAL_SEED_RANGE: Tuple[int, int] = (1, 10_000)
CV_METRIC = "merror"

# Fixed XGBoost parameters shared by search and final fit
BASE_XGB_PARAMS = {
    "objective": "multi:softprob",
    "eval_metric": CV_METRIC,
    "num_class": NUM_CLASSES,
    "nthread": N_THREADS,
    "verbosity": 0,
}

# Search space: (low, high) inclusive bounds, sampled uniformly
SEARCH_SPACE: Dict[str, Tuple[float, float]] = {
    "max_depth": (6, 10),
    "learning_rate": (0.01, 0.3),
    "gamma": (0.0, 0.2),
    "reg_alpha": (0.0, 1.0),
    "reg_lambda": (0.5, 2.0),
    "subsample": (0.6, 0.9),
    "colsample_bytree": (0.5, 0.8),
    "min_child_weight": (1, 40),
    "max_delta_step": (1, 10),
}
INTEGER_PARAMS = ("max_depth", "min_child_weight", "max_delta_step")

# ============================================================================
# EVALUATION
# ============================================================================
TOP_N_FEATURES = 10
N_TREES_TO_RENDER = 2
