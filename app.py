import os
import logging
from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS
from flask_login import LoginManager
from werkzeug.middleware.proxy_fix import ProxyFix

# Import database instance
from database import db

# Configure logging for debugging
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)

# Identity headers set by the trusted reverse proxy in front of the app
USER_ID_HEADER = 'X-Auth-User-Id'
USER_EMAIL_HEADER = 'X-Auth-User-Email'
USER_NAME_HEADER = 'X-Auth-User-Name'
USER_ROLE_HEADER = 'X-Auth-User-Role'

login_manager = LoginManager()

@login_manager.user_loader
def load_user(user_id):
    from models import User
    return db.session.get(User, int(user_id))

@login_manager.request_loader
def load_user_from_request(request):
    """Resolve the proxy-supplied identity, creating the user on first sight.

    The role header only seeds a new user; afterwards the stored role wins so
    admins can manage roles through the users API.
    """
    from models import User, UserRole

    external_id = request.headers.get(USER_ID_HEADER, '').strip()
    email = request.headers.get(USER_EMAIL_HEADER, '').strip().lower()
    if not external_id or not email:
        return None

    user = User.query.filter_by(external_id=external_id).first()
    if user is None:
        user = User.query.filter_by(email=email).first()

    first_name, _, last_name = request.headers.get(USER_NAME_HEADER, '').strip().partition(' ')

    if user is None:
        try:
            role = UserRole(request.headers.get(USER_ROLE_HEADER, '').strip().lower())
        except ValueError:
            role = UserRole.RECRUITER
        user = User(external_id=external_id, email=email, username=email,
                    first_name=first_name or None, last_name=last_name or None, role=role)
        db.session.add(user)
        db.session.commit()
        logger.info(f"Registered user {email} as {role.value}")
        return user

    changed = False
    if user.external_id != external_id:
        user.external_id = external_id
        changed = True
    if first_name and (user.first_name, user.last_name) != (first_name, last_name or None):
        user.first_name = first_name
        user.last_name = last_name or None
        changed = True
    if changed:
        db.session.commit()
    return user

@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'success': False, 'error': 'Authentication required'}), 401

def create_default_admin(app):
    """Create default admin user if none exists"""
    from models import User, UserRole

    email = app.config.get('DEFAULT_ADMIN_EMAIL')
    if not email or User.query.filter_by(role=UserRole.ADMIN).first():
        return

    admin_user = User(
        username='admin',
        email=email,
        first_name='Admin',
        role=UserRole.ADMIN
    )
    db.session.add(admin_user)
    db.session.commit()
    logger.info(f"Default admin user created: {email}")

def create_app(config=None):
    load_dotenv()

    # Create the app
    app = Flask(__name__)
    # Enable CORS for API endpoints so the dashboard frontend can call them
    # from its own origin.
    CORS(app, resources={r"/api/*": {"origins": os.environ.get("ALLOWED_ORIGINS", "*")}})
    app.secret_key = os.environ.get("SESSION_SECRET", "dev-secret-key-change-in-production")
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)

    # Configure the database
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///recruitment.db")
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
        "pool_recycle": 300,
        "pool_pre_ping": True,
    }
    app.config["DEFAULT_ADMIN_EMAIL"] = os.environ.get("DEFAULT_ADMIN_EMAIL", "admin@recruitment.com")

    if config:
        app.config.update(config)

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)

    from errors import register_error_handlers
    from routes import register_routes
    from seed import register_commands
    register_error_handlers(app)
    register_routes(app)
    register_commands(app)

    with app.app_context():
        # Import models to create tables
        import models  # noqa: F401

        db.create_all()
        create_default_admin(app)

    return app
