from flask import Flask, jsonify
from models import db
from routes.prompts import prompts_bp
from routes.scheduling import scheduling_bp
from routes.submissions import submissions_bp
from services import scheduling_config
from services.activation import ActivationReconciler
from services.scheduling_config import DEFAULT_CONFIG_FILENAME
from services.seed import seed_database
from utils.helpers import floor_minute, parse_timestamp, to_iso, utcnow
from dotenv import load_dotenv
from flask_migrate import Migrate
from datetime import timedelta
import logging
import os
import click # flask CLI commands for the prompt reconciler

### LOAD ENVIRONMENT VARIABLES ######################
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = Flask(__name__)
app.permanent_session_lifetime = timedelta(days=7)
app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv("DATABASE_URL", "sqlite:///promptwall.db")
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
app.config['SCHEDULING_CONFIG_PATH'] = os.getenv(
    "SCHEDULING_CONFIG_PATH", os.path.join(os.getcwd(), DEFAULT_CONFIG_FILENAME)
)
app.config['PROMPT_RECONCILER_AUTOSTART'] = os.getenv("PROMPT_RECONCILER_AUTOSTART", "false").lower() == "true"
app.secret_key = os.getenv("FLASK_SECRET_KEY", "fallbackkey")
db.init_app(app)
migrate = Migrate(app, db)

scheduling_store = scheduling_config.init_app(app)
# activation job; its lifecycle is separate from the config's isActive flag
reconciler = ActivationReconciler(app, scheduling_store)

app.register_blueprint(prompts_bp)
app.register_blueprint(scheduling_bp)
app.register_blueprint(submissions_bp)

### ALL ROUTES ######################

@app.route("/ping")
def ping():
    return "pong"

@app.errorhandler(404)
def not_found(e):
    return jsonify({"success": False, "error": "Not found"}), 404

@app.errorhandler(405)
def method_not_allowed(e):
    return jsonify({"success": False, "error": "Method not allowed"}), 405

@app.errorhandler(500)
def internal_error(e):
    app.logger.error("Unhandled error: %s", e)
    return jsonify({"success": False, "error": "Internal server error"}), 500

### CLI COMMANDS ######################

@app.cli.command("reconcile-prompts")
@click.option("--now", "now_str", default=None, help="Reference time (ISO-8601); defaults to the current time.")
def reconcile_prompts_command(now_str):
    """Run one activation pass over stored prompts."""
    now = parse_timestamp(now_str) if now_str else None
    result = reconciler.run_once(now=now)
    if result is None:
        click.echo("⏳ A reconciliation pass is already running.")
        return
    activated, deactivated = result
    click.echo(f"✅ Activated {activated}, deactivated {deactivated} prompt(s).")

@app.cli.command("run-reconciler")
def run_reconciler_command():
    """Run the activation job in the foreground until Ctrl-C."""
    reconciler.start()
    click.echo(f"🚀 Prompt reconciler running (every {scheduling_store.get().interval_minutes} min). Ctrl-C to stop.")
    try:
        while not reconciler.wait(timeout=1):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        reconciler.stop()
        click.echo("⏹️ Prompt reconciler stopped.")

@app.cli.command("seed-db")
@click.option("--admin-email", default="admin@example.com", show_default=True)
@click.option("--admin-password", default="password123", show_default=True)
@click.option("--base-time", "base_time_str", default=None, help="First slot (ISO-8601); defaults to now.")
def seed_db_command(admin_email, admin_password, base_time_str):
    """Create tables, demo categories, an admin user and sample prompts."""
    db.create_all()
    base_time = floor_minute(parse_timestamp(base_time_str) if base_time_str else utcnow())
    interval = scheduling_store.get().interval_minutes
    categories, prompts = seed_database(admin_email, admin_password, interval, base_time)
    click.echo(f"🌱 Seeded {categories} categories and {prompts} prompts "
               f"({interval} min apart, starting {to_iso(base_time)}).")

if app.config['PROMPT_RECONCILER_AUTOSTART']:
    reconciler.start()

if __name__ == "__main__":
    with app.app_context():
        db.create_all()
    app.run(debug=True, host="0.0.0.0", port=5001, use_reloader=False)
