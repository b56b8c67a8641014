"""CLI commands for Flask application."""

import click
from flask.cli import with_appcontext


def init_companion_types() -> int:
    """Insert or update default companion types. Returns rows touched."""
    from app import db
    from app.models.pet import COMPANION_TYPES, CompanionType

    for data in COMPANION_TYPES:
        existing = CompanionType.query.filter_by(code=data["code"]).first()
        if existing:
            for key, value in data.items():
                setattr(existing, key, value)
        else:
            db.session.add(CompanionType(**data))

    db.session.commit()
    return len(COMPANION_TYPES)


def init_exercises() -> int:
    """Insert missing catalog exercises and refresh difficulties."""
    from app import db
    from app.models.workout import EXERCISES, Exercise

    for data in EXERCISES:
        existing = Exercise.query.filter_by(name=data["name"]).first()
        if existing:
            existing.muscle = data["muscle"]
            existing.difficulty = data["difficulty"]
        else:
            db.session.add(Exercise(**data))

    db.session.commit()
    return len(EXERCISES)


@click.group()
def seed():
    """Load default master data."""
    pass


@seed.command()
@with_appcontext
def companions():
    """Load the default companion types."""
    count = init_companion_types()
    click.echo(f"Seeded {count} companion types")


@seed.command()
@with_appcontext
def exercises():
    """Load the default exercise catalog."""
    count = init_exercises()
    click.echo(f"Seeded {count} exercises")


@click.group()
def progression():
    """Progression maintenance commands."""
    pass


@progression.command("recompute-streaks")
@click.option("--user-id", type=int, default=None, help="Only this user")
@with_appcontext
def recompute_streaks(user_id):
    """Rebuild training streaks from training history."""
    from app import db
    from app.models import User
    from app.services.streak_service import StreakService

    service = StreakService()
    query = User.query.order_by(User.id)
    if user_id is not None:
        query = query.filter_by(id=user_id)

    updated = 0
    for user in query.all():
        try:
            streak = service.recompute_training_streak(user.id)
            db.session.commit()
            updated += 1
            click.echo(
                f"  user {user.id}: current={streak.current_streak} best={streak.best_streak}"
            )
        except Exception as e:
            db.session.rollback()
            click.echo(f"  user {user.id}: ERROR - {e}")

    click.echo(f"Done! Recomputed {updated} streaks")


def init_app(app):
    """Register CLI commands with the app."""
    app.cli.add_command(seed)
    app.cli.add_command(progression)
