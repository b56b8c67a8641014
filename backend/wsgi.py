"""WSGI entry point."""

import os

from app import create_app, db
from app.cli import init_companion_types, init_exercises

app = create_app(os.environ.get("FLASK_ENV", "production"))


# Load master data on startup
with app.app_context():
    db.create_all()
    try:
        init_companion_types()
        init_exercises()
    except Exception as e:
        db.session.rollback()
        app.logger.warning(f"Failed to seed master data: {e}")


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000)
