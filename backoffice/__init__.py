"""
Package: backoffice
Create and configure the Flask app, logging, and database
"""

import sys
from flask import Flask
from backoffice import config
from backoffice.common import log_handlers

# -----------------------------------------------------------------------------
# One global Flask app so `from backoffice import app` returns the instance
# with every route registered; create_app() hands out the same instance
# -----------------------------------------------------------------------------
app = Flask(__name__)
app.config.from_object(config)

# Initialize the database plugin
from backoffice.models import db  # pylint: disable=wrong-import-position
db.init_app(app)

with app.app_context():
    # Import after the app exists so @app.route binds to it
    from backoffice import routes, models  # noqa: F401  pylint: disable=unused-import, wrong-import-position
    from backoffice.common import error_handlers, cli_commands  # noqa: F401  pylint: disable=unused-import, wrong-import-position

    try:
        db.create_all()
    except Exception as err:  # pylint: disable=broad-except
        app.logger.critical("%s: Cannot continue", err)
        sys.exit(4)

    # Set up logging for production
    log_handlers.init_logging(app, "gunicorn.error")

    app.logger.info(70 * "*")
    app.logger.info("  B E N E F I T S   B A C K - O F F I C E   I N I T  ".center(70, "*"))
    app.logger.info(70 * "*")
    app.logger.info(
        "Reorder sessions: page size %s, search fields %s",
        app.config["REORDER_PAGE_SIZE"],
        ", ".join(app.config["REORDER_SEARCH_FIELDS"]),
    )


def create_app():
    """Factory-style accessor to the (already created) global app."""
    return app
