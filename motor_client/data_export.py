"""
Data export functionality for the motor controller client.
Handles exporting position/setpoint history to various formats.
"""

import logging
from typing import Sequence

import pandas as pd

from motor_client.config import EXCEL_SHEET_NAME
from motor_client.data_models import Sample

logger = logging.getLogger(__name__)

COLUMNS = ["time_ms", "position", "setpoint"]


def samples_to_frame(samples: Sequence[Sample]) -> pd.DataFrame:
    """Convert samples to a DataFrame with one row per sample."""
    rows = [(s.timestamp_ms, s.position, s.setpoint) for s in samples]
    return pd.DataFrame(rows, columns=COLUMNS)


class DataExporter:
    """Handles exporting measurement data to various formats."""

    @staticmethod
    def export_to_excel(samples: Sequence[Sample], filename: str) -> bool:
        """
        Export samples to Excel format.

        Args:
            samples: Samples to export
            filename: Output filename

        Returns:
            True if export successful, False otherwise
        """
        if not samples:
            return False

        try:
            df = samples_to_frame(samples)
            with pd.ExcelWriter(filename, engine='openpyxl') as writer:
                df.to_excel(writer, index=False, sheet_name=EXCEL_SHEET_NAME)
            return True
        except (OSError, ValueError, ImportError) as e:
            logger.error("Excel export to %s failed: %s", filename, e)
            return False

    @staticmethod
    def export_to_csv(samples: Sequence[Sample], filename: str) -> bool:
        """
        Export samples to CSV format.

        Args:
            samples: Samples to export
            filename: Output filename

        Returns:
            True if export successful, False otherwise
        """
        if not samples:
            return False

        try:
            samples_to_frame(samples).to_csv(filename, index=False)
            return True
        except OSError as e:
            logger.error("CSV export to %s failed: %s", filename, e)
            return False

    @staticmethod
    def export(samples: Sequence[Sample], filename: str) -> bool:
        """Export by file extension: .csv as CSV, anything else as Excel."""
        if filename.lower().endswith(".csv"):
            return DataExporter.export_to_csv(samples, filename)
        return DataExporter.export_to_excel(samples, filename)

    @staticmethod
    def get_export_summary(samples: Sequence[Sample]) -> dict:
        """
        Get summary statistics for the data to be exported.

        Args:
            samples: Samples to summarize

        Returns:
            Dictionary with summary statistics
        """
        if not samples:
            return {"count": 0}

        df = samples_to_frame(samples)
        total_ms = int(df["time_ms"].iloc[-1] - df["time_ms"].iloc[0])
        error = (df["setpoint"] - df["position"]).abs()

        return {
            "count": len(df),
            "total_time_s": total_ms / 1000.0,
            "sample_rate_hz": len(df) / (total_ms / 1000.0) if total_ms > 0 else 0,
            "min_position": int(df["position"].min()),
            "max_position": int(df["position"].max()),
            "min_setpoint": int(df["setpoint"].min()),
            "max_setpoint": int(df["setpoint"].max()),
            "mean_abs_error": float(error.mean()),
        }
