"""
Monitoring Package - Classification latency and result counts
"""
from .latency_tracker import LatencyTracker, get_latency_tracker

__all__ = ['LatencyTracker', 'get_latency_tracker']
