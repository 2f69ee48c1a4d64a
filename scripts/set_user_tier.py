"""
Grant or revoke the Pro plan for a user by email.
Run: python -m scripts.set_user_tier someone@example.com pro [--days 30]
"""
import argparse
import logging
import sys
from datetime import timedelta

from jobhunter.core.timeutils import utcnow
from jobhunter.db.session import SessionLocal
from jobhunter.db.models.user import User
from jobhunter.services import subscription_service

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def set_user_tier(db, email: str, tier: str, days: int = None) -> bool:
    """Set ``tier`` on the user with ``email``. Returns False when no such user exists."""
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user:
        logger.error(f"User {email} not found. Users are created on first sign-in.")
        return False

    logger.info(f"Found existing user: {email} (ID: {user.id}, tier: {user.subscription_tier})")
    if tier == subscription_service.TIER_PRO:
        now = utcnow()
        subscription_service.activate_pro(user, now)
        if days is not None:
            user.subscription_expires_at = now + timedelta(days=days)
    else:
        user.subscription_tier = subscription_service.TIER_FREE
        user.subscription_expires_at = None
    db.commit()
    logger.info(f"User {email} is now on the {tier} plan")
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("email")
    parser.add_argument("tier", choices=[subscription_service.TIER_FREE, subscription_service.TIER_PRO])
    parser.add_argument("--days", type=int, default=None, help="Pro duration (default: plan length)")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        return 0 if set_user_tier(db, args.email, args.tier, args.days) else 1
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating user: {e}", exc_info=True)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
