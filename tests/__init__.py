# Storefront Test Suite
#
# - Service tests (pytest fixtures in conftest.py, in-memory SQLite)
# - Route tests (Flask test client)
# - Concurrency tests (threads against a temporary SQLite file)
#
# Run with: pytest
