"""
DoseTrack Test Suite
====================

Test Structure:
- test_tools/: Dose scheduler unit tests
- test_services/: Service layer tests against in-memory SQLite
- test_api/: API endpoint tests for FastAPI routes
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run only marked tests
    pytest -m "unit"
    pytest -m "api"
"""
