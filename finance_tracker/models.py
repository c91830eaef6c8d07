"""SQLAlchemy models for the finance tracker web application.

Financial records live in the spreadsheet; only sign-ins and check history
are stored locally.
"""

from __future__ import annotations

import datetime as dt

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    name = db.Column(db.String(120), nullable=False)
    created_at = db.Column(db.DateTime, default=dt.datetime.utcnow, nullable=False)
    last_login_at = db.Column(db.DateTime)

    check_runs = db.relationship("CheckRun", back_populates="user", cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "lastLoginAt": self.last_login_at.isoformat() if self.last_login_at else None,
        }


class CheckRun(db.Model):
    __tablename__ = "check_runs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"))
    suite = db.Column(db.String(80), nullable=False)
    name = db.Column(db.String(160), nullable=False)
    passed = db.Column(db.Boolean, nullable=False)
    message = db.Column(db.String(500), nullable=False, default="")
    duration_ms = db.Column(db.Float, nullable=False, default=0.0)
    created_at = db.Column(db.DateTime, default=dt.datetime.utcnow, nullable=False)

    user = db.relationship("User", back_populates="check_runs")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "suite": self.suite,
            "name": self.name,
            "passed": self.passed,
            "message": self.message,
            "durationMs": self.duration_ms,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
