import logging
import os

from dotenv import load_dotenv
from flask import Flask, g, jsonify, request, session
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFError, CSRFProtect, generate_csrf
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from database import db

load_dotenv()

logging.basicConfig(
    level=os.environ.get("BUILDTRACK_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize Flask app
app = Flask(__name__)
app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get(
    "BUILDTRACK_DATABASE_URL", "sqlite:///buildtrack.db"
)
app.config["SECRET_KEY"] = os.environ.get(
    "BUILDTRACK_SECRET_KEY", "buildtrack-development-key"
)
app.config["PAGE_SIZE"] = int(os.environ.get("BUILDTRACK_PAGE_SIZE", "10"))
# JSON clients send the token from GET /api/auth/csrf in this header.
app.config["WTF_CSRF_HEADERS"] = ["X-CSRFToken", "X-CSRF-Token"]

db.init_app(app)
csrf = CSRFProtect(app)

# Models import should be after initializing db
from models.user import User
from models.project import Project  # noqa: F401
from models.milestone import Milestone  # noqa: F401
from models.daily_report import DailyReport  # noqa: F401
from models.inventory_item import InventoryItem  # noqa: F401

from forms import LoginForm, PasswordChangeForm, ProfileForm, SignupForm
from routes import bind_json_form, commit_or_error, json_error, json_success, login_required
from routes.inventory import inventory_bp
from routes.milestones import milestones_bp
from routes.projects import projects_bp
from routes.reports import reports_bp
from routes.users import users_bp
from services.exceptions import BuildTrackError
from services.user_service import change_password, update_profile

# Create flask command lines to update the db based on the model
# Useage:
# Create a migration script in ./migrations/versions
# > flask db migrate -m "Add inventory suppliers"
# Run the update
# > flask db upgrade
migrate = Migrate(app, db)
app.register_blueprint(projects_bp)
app.register_blueprint(milestones_bp)
app.register_blueprint(reports_bp)
app.register_blueprint(inventory_bp)
app.register_blueprint(users_bp)


# User Authentication
# ------------------------------
@app.before_request
def load_user():
    """Load the User stored in session into g.user.

    Views that need a user are wrapped with ``routes.login_required`` which
    answers 401 when g.user is None.
    """
    user_id = session.get("user_id")
    g.user = User.query.get(user_id) if user_id else None
    if g.user is not None and not g.user.is_active:
        session.pop("user_id", None)
        g.user = None


def authenticate_user(username, password):
    user = User.query.filter_by(username=username).first()
    if user and user.is_active and user.check_password(password):
        session["user_id"] = user.id
        session["user"] = user.name
        return user
    return None


@app.route("/api/auth/csrf", methods=["GET"])
def csrf_token():
    return jsonify({"success": True, "csrf_token": generate_csrf()})


@app.route("/api/auth/login", methods=["POST"])
def login():
    data = bind_json_form(LoginForm)
    user = authenticate_user(data["username"], data["password"])
    if user is None:
        return json_error("Invalid username or password.", status=401, error="unauthenticated")
    logging.getLogger(__name__).info("User %s logged in", user.id)
    return json_success(user.to_dict(), message="Logged in.")


@app.route("/api/auth/logout", methods=["POST"])
def logout():
    session.pop("user", None)
    session.pop("user_id", None)
    g.user = None
    return json_success(message="Logged out.")


@app.route("/api/auth/signup", methods=["POST"])
def signup():
    data = bind_json_form(SignupForm)
    user = User(
        username=data["username"],
        name=data["name"],
        email=data["email"],
        role=data["role"],
        phone=data.get("phone"),
        company=data.get("company"),
    )
    user.set_password(data["password"])
    db.session.add(user)
    error = commit_or_error("register the account")
    if error:
        return error
    return json_success(user.to_dict(), status=201, message="Registration successful! You can now log in.")


@app.route("/api/auth/me", methods=["GET"])
@login_required
def me():
    return json_success(g.user.to_dict())


@app.route("/api/auth/profile", methods=["PUT"])
@login_required
def profile():
    """Update the signed-in user's name, email, phone and company."""
    data = bind_json_form(ProfileForm, partial=True, user=g.user)
    update_profile(g.user, data)
    error = commit_or_error("update the profile")
    if error:
        return error
    session["user"] = g.user.name
    return json_success(g.user.to_dict(), message="Information Updated")


@app.route("/api/auth/change-password", methods=["PUT"])
@login_required
def password():
    data = bind_json_form(PasswordChangeForm, user=g.user)
    change_password(g.user, data["new_password"])
    error = commit_or_error("update the password")
    if error:
        return error
    return json_success(message="Password updated successfully.")


# Error handling
# ------------------------------
@app.errorhandler(BuildTrackError)
def handle_buildtrack_error(error: BuildTrackError):
    db.session.rollback()
    if error.status >= 500:
        logging.error("Request %s %s failed: %s", request.method, request.path, error.message)
    return jsonify(error.to_dict()), error.status


@app.errorhandler(CSRFError)
def handle_csrf_error(error: CSRFError):
    return json_error(error.description, status=400, error="csrf_error")


@app.errorhandler(SQLAlchemyError)
def handle_database_error(error: SQLAlchemyError):
    db.session.rollback()
    logging.exception("Database error during %s %s", request.method, request.path)
    return json_error("A database error occurred. Please try again.", status=500, error="database_error")


@app.errorhandler(HTTPException)
def handle_http_error(error: HTTPException):
    return json_error(error.description, status=error.code, error=error.name.lower().replace(" ", "_"))


# Application Execution
# ------------------------------
if __name__ == "__main__":
    app.run(debug=True)
