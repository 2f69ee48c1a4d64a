"""
User upsert from an external identity callback.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobhunter.core.errors import ValidationError
from jobhunter.core.timeutils import utcnow
from jobhunter.db.models.user import User

logger = logging.getLogger(__name__)


def _first(profile: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = profile.get(key)
        if value:
            return value
    return None


def complete_external_login(
    db: Session,
    identity_id: Optional[str],
    email: Optional[str],
    profile: Optional[Dict[str, Any]] = None,
) -> User:
    """
    Create or refresh the user row for an external identity.

    The row is keyed by ``identity_id``; repeated logins update the email and
    the display fields but never create a second row.

    Args:
        db: Database session
        identity_id: Identity provider's stable user id
        email: Verified email address
        profile: Provider profile (Google userinfo or OIDC-style metadata)

    Returns:
        The persisted User

    Raises:
        ValidationError: If identity id or email is missing, or the email is
            already bound to another identity
    """
    if not identity_id or not email:
        raise ValidationError("Missing required fields")

    identity_id = str(identity_id)
    email = email.strip().lower()
    profile = profile or {}

    fields = {
        "email": email,
        "first_name": _first(profile, "given_name", "first_name"),
        "last_name": _first(profile, "family_name", "last_name"),
        "profile_image_url": _first(profile, "picture", "avatar_url"),
    }

    user = db.query(User).filter(User.id == identity_id).first()
    try:
        if user is None:
            user = User(id=identity_id, **fields)
            db.add(user)
            logger.info(f"Creating user from external login: user_id={identity_id}")
        else:
            for key, value in fields.items():
                if value is not None:
                    setattr(user, key, value)
            user.updated_at = utcnow()
            logger.info(f"Refreshing user from external login: user_id={identity_id}")
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Email already bound to another identity: user_id={identity_id}")
        raise ValidationError("Email is already linked to another account")

    db.refresh(user)
    return user
