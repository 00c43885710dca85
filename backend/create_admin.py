#!/usr/bin/env python3
"""
Create (or reset) the RAVITO admin account.
Run from the backend directory: python create_admin.py [email] [password]
"""
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from ravito.core.database import SessionLocal
from ravito.core.roles import ApprovalStatus, Role
from ravito.core.security import hash_password
from ravito.core.validation import validate_email, validate_password
from ravito.models.user import User
from ravito.services.seed import ADMIN_EMAIL, ADMIN_PASSWORD, ensure_admin

logger = logging.getLogger("create_admin")


def create_admin(email: str, password: str) -> int:
    email_check = validate_email(email)
    if not email_check.is_valid:
        logger.error("%s: %s", email, email_check.error)
        return 1
    strength = validate_password(password)
    if not strength.is_valid:
        logger.error("Mot de passe refusé: %s", ", ".join(strength.errors))
        return 1

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            existing.role = Role.admin.value
            existing.approval_status = ApprovalStatus.approved.value
            existing.hashed_password = hash_password(password)
            existing.is_active = True
            db.commit()
            logger.info("User '%s' promoted to admin, password reset", email)
        else:
            ensure_admin(db, email=email, password=password)
            logger.info("Admin '%s' created", email)
        return 0
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating admin user")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = sys.argv[1:]
    sys.exit(create_admin(
        args[0] if len(args) > 0 else ADMIN_EMAIL,
        args[1] if len(args) > 1 else ADMIN_PASSWORD,
    ))
