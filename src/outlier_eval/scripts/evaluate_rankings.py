"""Precision-Recall evaluation script for outlier rankings."""

import argparse
import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from outlier_eval.evaluation import (
    OutlierPrecisionRecallCurve,
    PRCurveConfig,
    ResultStore,
    build_rankings,
)
from outlier_eval.utils.data_loading import (
    label_counts,
    load_table,
    normalize_data_section,
)
from outlier_eval.utils.mlflow_logger import MLflowLogger

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", format_str: str = None):
    """Set up logging configuration."""
    if format_str is None:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=format_str,
        handlers=[logging.StreamHandler()],
    )


def load_config(config_path: str) -> dict:
    """Load configuration from YAML file."""
    with open(config_path, "r") as f:
        config = yaml.safe_load(f)
    return config or {}


def run_evaluation(config: dict, output_path: Optional[str] = None) -> ResultStore:
    """
    Evaluate every configured ranking and write the curves as text.

    Args:
        config: Configuration dictionary
        output_path: Output file, overrides ``output.path`` from the config

    Returns:
        Store holding the computed curves
    """
    schema = normalize_data_section(config.get("data"))
    evaluator = OutlierPrecisionRecallCurve(
        PRCurveConfig.from_dict(config.get("evaluation"))
    )

    df = load_table(schema)
    labels, rankings = build_rankings(df, schema)
    logger.info(f"Label distribution: {label_counts(labels)}")
    logger.info(f"Evaluating {len(rankings)} rankings")

    store = evaluator.process_new_result(labels, rankings)
    if len(store) == 0:
        logger.warning("No precision-recall curves were produced")
        return store

    output = output_path or (config.get("output") or {}).get("path")
    if output:
        output = Path(output)
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w") as f:
            store.write_text(f)
        logger.info(f"Curves saved to: {output}")

    if config.get("use_mlflow", False):
        load_dotenv()
        tracking_uri = config.get("mlflow_tracking_uri") or os.getenv(
            "MLFLOW_TRACKING_URI"
        )
        with MLflowLogger(
            experiment_name=config.get("experiment_name", "pr-curve-evaluation"),
            tracking_uri=tracking_uri,
        ) as mlflow_logger:
            mlflow_logger.log_params(
                {
                    "positive_class_name": evaluator.config.positive_class_name,
                    "data_path": str(schema.data_path),
                    "n_rankings": len(rankings),
                }
            )
            mlflow_logger.set_tags(
                {"positive_class_name": evaluator.config.positive_class_name}
            )
            mlflow_logger.log_curves(store)

    return store


def main(argv=None):
    """Main function."""
    parser = argparse.ArgumentParser(
        description="Precision-Recall curve evaluation of outlier rankings"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="configs/evaluation.yaml",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Path of the text output (overrides output.path)",
    )
    args = parser.parse_args(argv)

    config = load_config(args.config)

    logging_cfg = config.get("logging") or {}
    setup_logging(
        level=logging_cfg.get("level", "INFO"),
        format_str=logging_cfg.get("format"),
    )

    try:
        return run_evaluation(config, output_path=args.output)
    except Exception as e:
        logger.error(f"Evaluation failed: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
