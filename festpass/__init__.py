from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
import logging
import os
from dotenv import load_dotenv

load_dotenv()

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()


def create_app(config=None):
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL') or 'sqlite:///festpass.db'
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL', 'INFO')

    # Pass issuance
    app.config['PARTICIPANT_ID_PREFIX'] = os.environ.get('PARTICIPANT_ID_PREFIX', 'VIB')
    app.config['PASS_PRODUCT_NAME'] = os.environ.get('PASS_PRODUCT_NAME', 'techfest')
    app.config['QR_PIXEL_SIZE'] = int(os.environ.get('QR_PIXEL_SIZE', 300))
    app.config['QR_MARGIN'] = int(os.environ.get('QR_MARGIN', 2))
    app.config['TICKET_BACKGROUND'] = os.environ.get(
        'TICKET_BACKGROUND', os.path.join(app.root_path, 'static', 'ticket-background.png'))

    # Scanning
    app.config['SCAN_DEDUP_SECONDS'] = float(os.environ.get('SCAN_DEDUP_SECONDS', 2.0))

    # Email
    app.config['MAIL_SERVER'] = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
    app.config['MAIL_PORT'] = int(os.environ.get('MAIL_PORT', 587))
    app.config['MAIL_USE_TLS'] = os.environ.get('MAIL_USE_TLS', 'true').lower() in ['true', '1', 't']
    app.config['MAIL_USERNAME'] = os.environ.get('MAIL_USERNAME')
    app.config['MAIL_PASSWORD'] = os.environ.get('MAIL_PASSWORD')
    app.config['MAIL_DEFAULT_SENDER'] = os.environ.get('MAIL_DEFAULT_SENDER', 'noreply@techfest.local')

    if config:
        app.config.update(config)

    # Configure logging
    logging.basicConfig(level=app.config['LOG_LEVEL'])
    app.logger.setLevel(app.config['LOG_LEVEL'])

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    # Create tables
    with app.app_context():
        from festpass import models  # noqa: F401
        db.create_all()

    # User loader for Flask-Login
    from festpass.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'code': 'unauthorized', 'error': 'Please log in to continue.'}), 401

    # Register blueprints
    from festpass.routes import auth_bp, events_bp, pass_bp, checkin_bp, verification_bp
    from festpass.routes import auth, events, passes, checkin, verification  # noqa: F401

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(events_bp, url_prefix='/events')
    app.register_blueprint(pass_bp, url_prefix='/pass')
    app.register_blueprint(checkin_bp, url_prefix='/checkin')
    app.register_blueprint(verification_bp)

    from festpass.exceptions import PassError

    @app.errorhandler(PassError)
    def handle_pass_error(error):
        return jsonify(error.to_dict()), error.http_status

    return app
