"""
EMG Package - Activity smoothing and sync
"""
from .activity import EMGActivityTracker

__all__ = ['EMGActivityTracker']
