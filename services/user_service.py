# services/user_service.py
"""
User registration, authentication and listing
"""

import logging
from typing import List

from email_validator import validate_email, EmailNotValidError
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.database_models import db, User
from core.errors import AuthError, StoreError, ValidationError

logger = logging.getLogger(__name__)

USER_EXISTS_MESSAGE = 'User already exists. Please try logging in.'
USER_NOT_FOUND_MESSAGE = 'User not found. Please sign up.'
INVALID_PASSWORD_MESSAGE = 'Invalid password.'


def _security_manager():
    return current_app.extensions['security_manager']


def normalize_email(email: str) -> str:
    """
    Canonical form of an address for storage and lookup.

    Registration and login both go through here, so an address typed with
    a differently encoded or cased domain still finds its account.
    Addresses email-validator rejects fall back to trimmed lower case.
    """
    email = (email or '').strip()
    try:
        return validate_email(email, check_deliverability=False).normalized.lower()
    except EmailNotValidError:
        return email.lower()


def register_user(name: str, email: str, password: str) -> User:
    """
    Create a user account.

    Uniqueness of the email is left to the database constraint: the insert
    is attempted directly and a constraint violation means the account
    already exists.

    Raises:
        ValidationError: missing field, malformed email, or duplicate email
        StoreError: database failure
    """
    name = (name or '').strip()
    email = (email or '').strip()

    if not name or not email or not password:
        raise ValidationError('All fields are required.')

    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError('Please enter a valid email address.', detail=str(e))
    email = normalize_email(email)

    password_hash, salt = _security_manager().hash_password(password)
    user = User(name=name, email=email, password_hash=password_hash, password_salt=salt)

    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.info("Registration rejected, email already registered: %s", email)
        raise ValidationError(USER_EXISTS_MESSAGE)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Failed to register user: %s", e, exc_info=True)
        raise StoreError(detail=str(e))

    logger.info("Registered user %s", user.id)
    return user


def authenticate(email: str, password: str) -> User:
    """
    Check credentials and return the matching user.

    Raises:
        AuthError: unknown email or wrong password
        StoreError: database failure
    """
    email = normalize_email(email)
    try:
        user = User.query.filter_by(email=email).first() if email else None
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Failed to look up user: %s", e, exc_info=True)
        raise StoreError('Something went wrong. Please try again.', detail=str(e))

    if user is None:
        raise AuthError(USER_NOT_FOUND_MESSAGE)

    if not _security_manager().verify_password(password or '', user.password_hash,
                                               user.password_salt):
        raise AuthError(INVALID_PASSWORD_MESSAGE)

    return user


def list_users() -> List[User]:
    try:
        return User.query.order_by(User.created_at, User.id).all()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Failed to list users: %s", e, exc_info=True)
        raise StoreError(detail=str(e))
