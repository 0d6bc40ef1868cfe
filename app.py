import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import Config
from routes import health_bp, availability_bp, catalog_bp, booking_bp, cron_bp

from models import db
from flask_migrate import Migrate
from services.errors import BookingError


def create_app(config_object=Config, **overrides):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.config.update(overrides)

    # Logging
    log_level = getattr(logging, app.config.get("LOG_LEVEL", "INFO"), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    app.logger.setLevel(log_level)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(availability_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(cron_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.errorhandler(BookingError)
    def handle_booking_error(e):
        if e.status_code >= 500:
            app.logger.error("%s: %s", type(e).__name__, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return jsonify(error=e.description), e.code
        # customers never see raw storage errors
        app.logger.error("Unhandled exception: %s", e, exc_info=True)
        return jsonify(error="Internal server error"), 500

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp


    register_cli(app)


    return app

#-------------------------
import click
from services.reminders import deliver_pending, scan_for_reminders
from services.slot_generation import generate_slots
from utils.dates import parse_date
from utils.seed import seed_services

def register_cli(app):
    @app.cli.command("generate-slots")
    @click.option("--days", "days_ahead", type=int, default=None, help="Horizon in days (default GENERATE_DAYS_AHEAD).")
    def generate_slots_cmd(days_ahead):
        """Materialise availability slots from the active weekly rules."""
        days_ahead = days_ahead or app.config.get("GENERATE_DAYS_AHEAD", 28)
        try:
            created = generate_slots(days_ahead)
        except BookingError as e:
            raise click.ClickException(e.message)
        click.echo(f"Generated {created} slots")

    @app.cli.command("send-reminders")
    @click.option("--date", "date_str", default=None, help="Target date YYYY-MM-DD (default tomorrow).")
    def send_reminders_cmd(date_str):
        """Queue day-ahead reminders for confirmed bookings."""
        target = None
        if date_str:
            target = parse_date(date_str)
            if target is None:
                raise click.BadParameter("Expected YYYY-MM-DD", param_hint="--date")
        try:
            created = scan_for_reminders(target)
        except BookingError as e:
            raise click.ClickException(e.message)
        click.echo(f"Queued {created} reminders")

    @app.cli.command("deliver-notifications")
    @click.option("--limit", type=int, default=100)
    def deliver_notifications_cmd(limit):
        """Email queued notifications through SMTP."""
        sent, failed = deliver_pending(limit)
        click.echo(f"Sent {sent}, failed {failed}")

    @app.cli.command("seed-services")
    def seed_services_cmd():
        """Insert the starter service catalogue (idempotent)."""
        created = seed_services()
        click.echo(f"Created {created} services")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
