"""Source connectors for calibration datasets."""

from .base import DatasetConnector, DatasetResult
from .http_json import FileDatasetConnector, HttpDatasetConnector

__all__ = [
    "DatasetConnector",
    "DatasetResult",
    "FileDatasetConnector",
    "HttpDatasetConnector",
]
