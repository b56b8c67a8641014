"""User model."""

from datetime import datetime

from werkzeug.security import check_password_hash, generate_password_hash

from app import db


class User(db.Model):
    """User account. Progression state lives in related tables."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    login_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=True, index=True)
    display_name = db.Column(db.String(100), nullable=True)
    password_hash = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(20), default="user", nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    progression = db.relationship(
        "ProgressionAccount",
        backref="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    streaks = db.relationship(
        "StreakRecord", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )
    pets = db.relationship(
        "Pet", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )
    training_records = db.relationship(
        "TrainingRecord", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )

    def set_password(self, password: str) -> None:
        """Set password hash."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Check password against hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict:
        """Convert user to dictionary."""
        account = self.progression
        return {
            "id": self.id,
            "login_id": self.login_id,
            "email": self.email,
            "display_name": self.display_name,
            "role": self.role,
            "level": account.level if account else 1,
            "total_exp": account.total_exp if account else 0,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<User {self.login_id}>"
