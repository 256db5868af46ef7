"""Behave environment hooks for the reorder BDD scenarios.

The scenarios drive the REST API through Flask's test client, so no server
or browser is needed. DATABASE_URI defaults to an in-memory SQLite database
and must be set before the backoffice package is first imported.
"""

from __future__ import annotations

import logging
import os

os.environ.setdefault("DATABASE_URI", "sqlite:///:memory:")

from backoffice import create_app  # noqa: E402  pylint: disable=wrong-import-position
from backoffice.models import Benefit, db  # noqa: E402  pylint: disable=wrong-import-position
from backoffice.routes import sessions  # noqa: E402  pylint: disable=wrong-import-position


def before_all(context):
    """Create the app once and keep an application context open."""
    context.app = create_app()
    context.app.config["TESTING"] = True
    context.app.logger.setLevel(logging.CRITICAL)
    context.app_context = context.app.app_context()
    context.app_context.push()


def before_scenario(context, scenario):  # pylint: disable=unused-argument
    """Start every scenario with an empty catalog and no open sessions."""
    sessions.clear()
    db.session.query(Benefit).delete()
    db.session.commit()
    context.client = context.app.test_client()
    context.ids = {}
    context.session_id = None
    context.resp = None


def after_all(context):
    """Drop the application context."""
    sessions.clear()
    db.session.remove()
    context.app_context.pop()
