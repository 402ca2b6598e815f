# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Passwords are hashed with bcrypt (cost factor 12). Operators are created from
the CLI; there is no self-registration.
"""

import bcrypt
import re
from sqlalchemy import or_
from ..extensions import db
from ..models import User


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Minimum 8 characters with at least one letter and one digit.

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


def create_user(username: str, email: str, password: str) -> User:
    """
    Create an operator account.

    Raises PasswordValidationError for weak passwords and ValueError when the
    username or email is taken.
    """
    username = (username or "").strip()
    email = (email or "").strip().lower()
    if not username or not email:
        raise ValueError("username and email are required")

    existing = db.session.query(User).filter(
        or_(User.username == username, User.email == email)
    ).first()
    if existing:
        raise ValueError("Username or email already exists")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(identifier: str, password: str) -> User | None:
    """Look up by username or email and check the password. Inactive accounts never authenticate."""
    user = db.session.query(User).filter(
        or_(User.username == identifier, User.email == identifier.lower())
    ).first()

    if not user or not user.is_active:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user
