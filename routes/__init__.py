"""
API Routes package
"""
from .webhook import webhook_bp
from .qr_codes import qr_codes_bp
from .admin import admin_bp
from .withdrawals import withdrawals_bp

__all__ = [
    'webhook_bp',
    'qr_codes_bp',
    'admin_bp',
    'withdrawals_bp',
]


def register_blueprints(app):
    """Register all API blueprints"""
    app.register_blueprint(webhook_bp)
    app.register_blueprint(qr_codes_bp, url_prefix='/api')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
    app.register_blueprint(withdrawals_bp, url_prefix='/api/user')

    return app
