"""
Scripts for DoseTrack
Utility scripts for development data
"""

from .seed_data import seed_all

__all__ = [
    "seed_all",
]
