import secrets

import click
from flask import Flask, g, send_from_directory
from flask_migrate import Migrate

from config import Config
from models import db
from routes import ALL_BLUEPRINTS
from security.csrf import csrf_protect
from utils.auth_context import load_current_user
from utils.error_handlers import register_error_handlers


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Register routes
    for bp in ALL_BLUEPRINTS:
        app.register_blueprint(bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    register_error_handlers(app)

    @app.before_request
    def _load_user():
        load_current_user()

    @app.before_request
    def _csrf_protect():
        return csrf_protect(getattr(g, "user", None))

    @app.get(app.config["UPLOAD_URL_PREFIX"] + "/<path:filename>")
    def uploaded_header(filename):
        return send_from_directory(app.config["UPLOAD_FOLDER"], filename)

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
from models.user import User
from services.seed import ensure_admin, reset_data


def register_cli(app):
    @app.cli.command("create-admin")
    @click.argument("email")
    @click.argument("password")
    def create_admin(email, password):
        """Create the ADMIN account if the email is not taken yet."""
        admin = ensure_admin(email, password)
        if admin.role != "ADMIN":
            raise click.ClickException(f"{admin.email} already exists with role {admin.role}")
        click.echo(f"{admin.email} is ADMIN")

    @app.cli.command("seed-data")
    def seed_data():
        """Ensure the admin account, then replace all other data with the seed set."""
        password = app.config.get("ADMIN_PASSWORD")
        generated = password is None and not User.query.filter_by(email=app.config["ADMIN_EMAIL"]).first()
        if password is None:
            password = secrets.token_urlsafe(12)

        admin = ensure_admin(app.config["ADMIN_EMAIL"], password)
        counts = reset_data()

        click.echo(f"Deleted: {counts}")
        if generated:
            click.echo(f"Admin {admin.email} password: {password}")
        click.echo("Seed data created")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
