"""MLflow tracking of precision-recall evaluations."""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

import mlflow

logger = logging.getLogger(__name__)


def setup_mlflow(
    experiment_name: str,
    tracking_uri: Optional[str] = None,
) -> str:
    """
    Set up MLflow tracking.

    Args:
        experiment_name: Name of the experiment
        tracking_uri: MLflow tracking server URI. If None, uses local file store

    Returns:
        Experiment ID
    """
    if tracking_uri is None:
        mlflow_dir = Path("mlflow")
        mlflow_dir.mkdir(exist_ok=True)
        tracking_uri = f"file://{mlflow_dir.absolute()}"

    mlflow.set_tracking_uri(tracking_uri)
    logger.info(f"MLflow tracking URI: {tracking_uri}")

    try:
        experiment = mlflow.get_experiment_by_name(experiment_name)
        if experiment is None:
            experiment_id = mlflow.create_experiment(experiment_name)
            logger.info(
                f"Created new experiment: {experiment_name} (ID: {experiment_id})"
            )
        else:
            experiment_id = experiment.experiment_id
            logger.info(
                f"Using existing experiment: {experiment_name} (ID: {experiment_id})"
            )
    except Exception as e:
        logger.error(f"Error setting up experiment: {e}")
        raise

    mlflow.set_experiment(experiment_name)
    return experiment_id


def metric_key(name: str) -> str:
    """Turn a ranking name into a valid MLflow metric key."""
    return "pr_auc_" + re.sub(r"[^0-9A-Za-z_\-./ ]", "_", name)


class MLflowLogger:
    """MLflow logging wrapper for precision-recall evaluations."""

    def __init__(
        self,
        experiment_name: str,
        run_name: Optional[str] = None,
        tracking_uri: Optional[str] = None,
    ):
        """
        Initialize MLflow logger and start a run.

        Args:
            experiment_name: Name of the experiment
            run_name: Name of the run. If None, MLflow generates one
            tracking_uri: MLflow tracking server URI
        """
        self.experiment_name = experiment_name
        self.run_name = run_name
        self.experiment_id = setup_mlflow(experiment_name, tracking_uri)

        self.run = None
        self.start_run()

    def start_run(self):
        """Start a new MLflow run."""
        if self.run is not None:
            logger.warning("Run already active. Ending previous run.")
            self.end_run()

        self.run = mlflow.start_run(
            run_name=self.run_name,
            experiment_id=self.experiment_id,
        )
        logger.info(f"Started MLflow run: {self.run.info.run_id}")
        return self.run

    def end_run(self, status: str = "FINISHED"):
        """
        End the current MLflow run.

        Args:
            status: Run status (FINISHED, FAILED, KILLED)
        """
        if self.run is not None:
            mlflow.end_run(status=status)
            logger.info(
                f"Ended MLflow run: {self.run.info.run_id} with status {status}"
            )
            self.run = None

    def log_params(self, params: Dict[str, Any]):
        """
        Log parameters.

        Args:
            params: Dictionary of parameters
        """
        try:
            mlflow.log_params(params)
            logger.debug(f"Logged {len(params)} parameters")
        except Exception as e:
            logger.error(f"Error logging parameters: {e}")

    def log_metrics(self, metrics: Dict[str, float], step: Optional[int] = None):
        """
        Log metrics.

        Args:
            metrics: Dictionary of metrics
            step: Step number
        """
        try:
            mlflow.log_metrics(metrics, step=step)
            logger.debug(f"Logged {len(metrics)} metrics at step {step}")
        except Exception as e:
            logger.error(f"Error logging metrics: {e}")

    def log_text(self, text: str, artifact_file: str):
        """
        Log text as an artifact.

        Args:
            text: Text to log
            artifact_file: Name of the artifact file
        """
        try:
            mlflow.log_text(text, artifact_file)
            logger.debug(f"Logged text to {artifact_file}")
        except Exception as e:
            logger.error(f"Error logging text: {e}")

    def set_tags(self, tags: Dict[str, Any]):
        """
        Set tags for the run.

        Args:
            tags: Dictionary of tags
        """
        try:
            mlflow.set_tags(tags)
            logger.debug(f"Set {len(tags)} tags")
        except Exception as e:
            logger.error(f"Error setting tags: {e}")

    def log_curves(self, store, artifact_file: str = "pr_curves.txt"):
        """
        Log the PR-AUC of every curve and their text serialization.

        Args:
            store: Store holding the computed curves
            artifact_file: Name of the text artifact
        """
        metrics = {metric_key(name): value for name, value in store.auc_summary().items()}
        self.log_metrics(metrics)
        self.log_text(store.to_text(), artifact_file)

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        if exc_type is not None:
            self.end_run(status="FAILED")
        else:
            self.end_run(status="FINISHED")
