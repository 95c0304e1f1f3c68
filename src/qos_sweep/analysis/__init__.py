from .results import ResultsWriter
from .status import BrokerStatusGate, is_status_topic
from .window import MeasurementWindow, WindowStats, compute_stats

__all__ = [
    "ResultsWriter",
    "BrokerStatusGate",
    "is_status_topic",
    "MeasurementWindow",
    "WindowStats",
    "compute_stats",
]
