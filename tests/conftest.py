"""
Shared test configuration

Points the application at an in-memory SQLite database unless DATABASE_URI
is already set (e.g. to the PostgreSQL test database in CI). This has to run
before the first import of the backoffice package.
"""

import os

os.environ.setdefault("DATABASE_URI", "sqlite:///:memory:")
