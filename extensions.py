"""
Flask extensions initialization
"""
from flask import current_app
from flask_cors import CORS

from baas import BaasServices

# Initialize extensions
cors = CORS()


def init_extensions(app, services=None):
    """Initialize all Flask extensions.

    `services` replaces the Appwrite-backed services (used by tests).
    """
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config.get('CORS_ORIGINS', '*')}},
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )

    if services is None:
        services = BaasServices.from_config(app.config)
    app.extensions['baas'] = services

    return app


def get_services() -> BaasServices:
    return current_app.extensions['baas']
