"""
Flask Application Factory - CMA Valuation API

Stateless: every request carries the project's transactions, so the
service needs no database. Valuation engines are memoized in-process
per (transaction set, reference date).
"""

import logging

from flask import Flask, jsonify
from flask_cors import CORS

from config import Config

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] [%(request_id)s] %(message)s'


def _configure_logging(level: str) -> None:
    """Root handler with request-id correlation; level from Config.LOG_LEVEL."""
    from api.middleware import RequestIdFilter

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if not getattr(h, '_valuation_handler', False)]
    handler._valuation_handler = True
    root.addHandler(handler)
    root.setLevel(getattr(logging, level, logging.INFO))


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    _configure_logging(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize CORS - allow all origins
    CORS(app,
         resources={r"/api/*": {"origins": "*"}},
         methods=["GET", "POST", "OPTIONS"],
         allow_headers=["Content-Type", "X-Request-ID"],
         expose_headers=["X-Request-ID", "X-API-Contract-Version"],
         supports_credentials=False,
         send_wildcard=True)

    # === API MIDDLEWARE ===
    from api.middleware import setup_request_id_middleware, setup_error_handlers
    setup_request_id_middleware(app)
    setup_error_handlers(app)

    from routes.valuation import valuation_bp
    app.register_blueprint(valuation_bp, url_prefix='/api')

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({
            "name": "CMA Valuation API",
            "status": "running",
        })

    return app


def run_app():
    """Main entry point for local development - starts server with Flask's dev server."""
    app = create_app()
    logging.getLogger('valuation').info("Starting CMA Valuation API on port 5000")
    app.run(debug=Config.DEBUG, host="0.0.0.0", port=5000)


if __name__ == "__main__":
    run_app()
