"""
Package: coupon_service
Create and configure the Flask app, logging, and database
"""

import os
import sys
from flask import Flask
from coupon_service import config
from coupon_service.common import log_handlers

# -----------------------------------------------------------------------------
# ONE global Flask app so `from coupon_service import app` gets the instance
# with every route registered; create_app() returns the same object
# -----------------------------------------------------------------------------
app = Flask(__name__)
app.config.from_object(config)

# Initialize the database and JWT plugins
from coupon_service.models import Admin, db  # noqa: E402  pylint: disable=wrong-import-position
from coupon_service.common.security import jwt  # noqa: E402  pylint: disable=wrong-import-position

db.init_app(app)
jwt.init_app(app)


def seed_admin():
    """Creates the Admin named by ADMIN_EMAIL/ADMIN_PASSWORD; failures are logged, not fatal"""
    email = app.config.get("ADMIN_EMAIL")
    password = app.config.get("ADMIN_PASSWORD")
    if not (email and password):
        return None
    try:
        return Admin.seed(email, password)
    except Exception as err:  # pylint: disable=broad-except
        app.logger.error("Admin seed failed: %s", err)
        return None


with app.app_context():
    # Route modules use current_app, so they must be imported inside the context
    from coupon_service import routes, uploads, models  # noqa: F401  pylint: disable=unused-import, wrong-import-position
    from coupon_service.common import (  # noqa: F401  pylint: disable=unused-import, wrong-import-position
        error_handlers,
        cli_commands,
        identity,
    )

    try:
        db.create_all()
    except Exception as err:  # pylint: disable=broad-except
        app.logger.critical("%s: Cannot continue", err)
        sys.exit(4)

    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    # Configure logging
    log_handlers.init_logging(app, "gunicorn.error")

    seed_admin()

    app.logger.info(70 * "*")
    app.logger.info("  C O U P O N   D I R E C T O R Y   S E R V I C E  ".center(70, "*"))
    app.logger.info(70 * "*")


def create_app():
    """Factory-style accessor to the (already created) global app."""
    return app
