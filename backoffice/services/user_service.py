"""User management service (no authentication)."""
import logging
from typing import List

from sqlalchemy.orm import Session

from backoffice.exceptions import NotFoundError, BusinessLogicError, ValidationError
from backoffice.models import User, Sale
from backoffice.utils.validators import parse_positive_int, parse_email, require_text

logger = logging.getLogger(__name__)

USER_ROLES = ('admin', 'seller', 'customer')


def _clean_user_data(data: dict, partial: bool = False) -> dict:
    cleaned = {}
    if not partial or 'first_name' in data:
        cleaned['first_name'] = require_text(data.get('first_name'), 'first_name', 100)
    if not partial or 'last_name' in data:
        cleaned['last_name'] = require_text(data.get('last_name'), 'last_name', 100)
    if not partial or 'email' in data:
        cleaned['email'] = parse_email(data.get('email'))
    if data.get('phone_number') is not None:
        cleaned['phone_number'] = require_text(data['phone_number'], 'phone_number', 30)
    if not partial or 'role' in data:
        role = data.get('role') or 'customer'
        if role not in USER_ROLES:
            raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}", 'role')
        cleaned['role'] = role
    return cleaned


def _ensure_email_free(email: str, session: Session, exclude_user_id=None):
    query = session.query(User).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.user_id != exclude_user_id)
    if query.first():
        raise BusinessLogicError(f'A user with email {email} already exists')


def create_user(data: dict, session: Session) -> User:
    data = data or {}
    cleaned = _clean_user_data(data)
    password = data.get('password')
    if password is not None and len(str(password)) < 6:
        raise ValidationError('password must be at least 6 characters', 'password')

    _ensure_email_free(cleaned['email'], session)

    user = User(**cleaned)
    if password:
        user.set_password(str(password))
    try:
        session.add(user)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"User {user.user_id} created ({user.role})")
    return user


def list_users(session: Session) -> List[User]:
    return session.query(User).order_by(User.user_id.desc()).all()


def get_user(user_id, session: Session) -> User:
    user_id = parse_positive_int(user_id, 'user_id')
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError('user', user_id)
    return user


def update_user(user_id, updates: dict, session: Session) -> User:
    if not updates:
        raise ValidationError('No data provided for update')
    cleaned = _clean_user_data(updates, partial=True)
    password = updates.get('password')
    if not cleaned and not password:
        raise ValidationError('No data provided for update')
    if password is not None and len(str(password)) < 6:
        raise ValidationError('password must be at least 6 characters', 'password')

    user = get_user(user_id, session)
    if 'email' in cleaned:
        _ensure_email_free(cleaned['email'], session, exclude_user_id=user.user_id)

    try:
        for field, value in cleaned.items():
            setattr(user, field, value)
        if password:
            user.set_password(str(password))
        session.commit()
    except Exception:
        session.rollback()
        raise
    return user


def delete_user(user_id, session: Session) -> None:
    """
    Delete a user.

    Raises:
        BusinessLogicError: if the user still owns sales
    """
    user = get_user(user_id, session)
    if session.query(Sale.sale_id).filter(Sale.user_id == user.user_id).first():
        raise BusinessLogicError(f'User {user.user_id} has sales and cannot be deleted')

    try:
        session.delete(user)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info(f"User {user.user_id} deleted")
