from .logger import setup_logger
from .metrics import PerformanceMetrics, AccuracyMetrics

__all__ = ['setup_logger', 'PerformanceMetrics', 'AccuracyMetrics']
