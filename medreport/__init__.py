"""
MedReport Application Factory
"""
import logging
from datetime import datetime, timezone
from flask import Flask, jsonify
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from werkzeug.exceptions import HTTPException
from medreport.config import get_config

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()


def envelope_error(message, status_code):
    return jsonify({"success": False, "message": message}), status_code


def register_error_handlers(app):
    from medreport.errors import GatewayError

    @app.errorhandler(GatewayError)
    def handle_gateway_error(e):
        if e.status_code >= 500:
            app.logger.warning(f'{type(e).__name__}: {e.message}')
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        if e.code == 413:
            return envelope_error('File too large', 413)
        return envelope_error(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        app.logger.exception('Unhandled error')
        db.session.rollback()
        return envelope_error('Internal server error', 500)


def create_app(config_name=None):
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    login_manager.session_protection = None
    CORS(app, resources={r"/*": {"origins": app.config.get('CORS_ORIGINS', '*')}})

    # Service handles
    from medreport.services.credential_service import CredentialGate
    from medreport.services.gemini_service import GeminiClient

    app.extensions['credential_gate'] = CredentialGate.from_config(app.config)
    app.extensions['gemini_client'] = GeminiClient.from_config(app.config)

    # Register blueprints
    from medreport.auth import auth_bp
    from medreport.api import api_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp)

    register_error_handlers(app)

    # Health check endpoint
    @app.route('/healthz')
    def healthz():
        """Health check for load balancers and monitoring"""
        from medreport.services.extraction_service import ocr_ready

        try:
            from sqlalchemy import text
            db.session.execute(text('SELECT 1'))
            db_status = "ok"
        except Exception as e:
            db.session.rollback()
            db_status = f"error: {type(e).__name__}"

        gemini_ok, gemini_msg = app.extensions['gemini_client'].ready()
        ocr_ok, ocr_msg = ocr_ready()

        return jsonify({
            "status": "ok" if db_status == "ok" else "degraded",
            "version": app.config['APP_VERSION'],
            "database": db_status,
            "gemini_ready": gemini_ok,
            "gemini_message": gemini_msg,
            "ocr_ready": ocr_ok,
            "ocr_message": ocr_msg,
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    # Version endpoint
    @app.route('/version')
    def version():
        """Version and build info"""
        return jsonify({
            "version": app.config['APP_VERSION'],
            "build_time": app.config['BUILD_TIME'],
            "git_commit": app.config['GIT_COMMIT'],
            "model": app.config['GEMINI_MODEL'],
        })

    # Handle database initialization
    with app.app_context():
        from sqlalchemy import inspect
        from medreport import models  # noqa: F401

        # Only create tables if they don't exist (safe for existing DB)
        inspector = inspect(db.engine)
        existing_tables = inspector.get_table_names()
        if not existing_tables:
            app.logger.info('No tables found, creating...')
            db.create_all()

    return app
