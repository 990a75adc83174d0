"""
Report orchestrator for the Weight Lifting Exercise quality model.

Executes the complete pipeline: download (if needed) → clean → search →
train → evaluate → predict → report.

Usage:
    python run_pipeline.py                      # Reproduce the standard report
    python run_pipeline.py --n-trials 3         # Quicker search
    python run_pipeline.py --seed 7             # Different split and search seed
    python run_pipeline.py --report-dir out/    # Custom output directory
"""
import argparse
import logging
import sys
from pathlib import Path

from activity_model import config
from activity_model.main import run_report_pipeline

logger = logging.getLogger(__name__)


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Build the Weight Lifting Exercise quality report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        '--n-trials',
        type=int,
        default=None,
        help=f'Number of search trials (default: {config.N_TRIALS})'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help=f'Seed for the split and the search (default: {config.RANDOM_STATE})'
    )
    parser.add_argument(
        '--report-dir',
        type=Path,
        default=None,
        help=f'Output directory (default: {config.REPORT_DIR})'
    )

    args = parser.parse_args()

    try:
        result = run_report_pipeline(
            n_trials=args.n_trials,
            seed=args.seed,
            report_dir=args.report_dir
        )
    except Exception as e:
        logger.error(f"❌ Report pipeline failed: {e}")
        sys.exit(1)

    logger.info(f"\nReport: {result.report_path}")


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    main()
