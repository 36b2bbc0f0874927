"""
QR Code Admin - Flask Backend Application
Main entry point
"""
import logging
import os
from pathlib import Path

from flask import Flask, jsonify, request
from dotenv import load_dotenv

# Load environment variables
# Always load `.env` next to this file (if it exists) regardless of the current
# working directory.
#
# IMPORTANT for production: do NOT override real environment variables
# injected by the host.
_is_production = os.getenv('FLASK_ENV', 'development') == 'production'
_dotenv_path = Path(__file__).resolve().parent / '.env'
if _dotenv_path.exists():
    load_dotenv(dotenv_path=_dotenv_path, override=(not _is_production))

# Import extensions and routes
from extensions import init_extensions
from config.settings import get_config
from routes import register_blueprints


def _configure_logging(app):
    level = str(app.config.get('LOG_LEVEL') or 'INFO').upper()
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )
    logging.getLogger().setLevel(level)


def create_app(config_class=None, services=None):
    """Application factory pattern

    `services` overrides the Appwrite-backed services container; tests pass
    an in-memory implementation here.
    """
    app = Flask(__name__)

    # Disable strict slashes to prevent 308 redirects
    app.url_map.strict_slashes = False

    # Load configuration
    if config_class is None:
        config_class = get_config()

    app.config.from_object(config_class)
    _configure_logging(app)

    # Initialize extensions
    init_extensions(app, services=services)

    # Register blueprints
    register_blueprints(app)

    @app.route('/', methods=['GET'])
    def index():
        return 'QR Code Admin API is running!', 200, {'content-type': 'text/plain; charset=utf-8'}

    # Health check endpoint
    @app.route('/api/health', methods=['GET'])
    def health_check():
        return jsonify({
            'success': True,
            'message': f"{app.config['APP_NAME']} is running",
            'version': app.config['APP_VERSION']
        }), 200

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'success': False, 'message': 'Resource not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        allowed = getattr(error, 'valid_methods', None)
        allowed_str = f" Allowed: {', '.join(sorted(set(allowed)))}" if allowed else ''

        # Include method/path so client logs immediately reveal
        # what endpoint was actually called.
        msg = f"Method not allowed ({request.method} {request.path}).{allowed_str}".strip()
        return jsonify({'success': False, 'message': msg}), 405

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({
            'success': False,
            'message': 'Internal server error'
        }), 500

    return app


# Create application instance
app = create_app()


if __name__ == '__main__':
    # Development server
    port = int(os.getenv('PORT', 3000))
    debug = os.getenv('DEBUG', 'False').lower() == 'true'

    print(f"""
    ╔══════════════════════════════════════════════════════════╗
    ║               QR Code Admin - Backend Server             ║
    ╠══════════════════════════════════════════════════════════╣
    ║  Local: {f'http://localhost:{port}':<49}║
    ║  Debug mode: {str(debug):<44}║
    ║                                                          ║
    ║  Endpoints:                                              ║
    ║  • POST /webhook                - Razorpay webhook       ║
    ║  • GET  /api/qr-codes           - List QR codes          ║
    ║  • GET  /api/admin/users        - List users             ║
    ║  • GET  /api/admin/transactions - List transactions      ║
    ║  • GET  /api/user/withdrawals   - List withdrawals       ║
    ╚══════════════════════════════════════════════════════════╝
    """)

    app.run(host='0.0.0.0', port=port, debug=debug, use_reloader=False)
