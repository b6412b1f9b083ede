"""
Test Tools Package
Tests for the tools module (dose scheduler)
"""

__all__ = [
    "test_dose_scheduler",
]
