"""
Create the platform admin account.

    python create_admin.py
    ADMIN_EMAIL=ops@reviewuplift.com ADMIN_PASSWORD=... python create_admin.py
"""

import logging
import os

from reviewuplift.infrastructure.config import get_settings
from reviewuplift.infrastructure.identity import IdentityError, get_identity_provider
from reviewuplift.infrastructure.persistence import AccountStatus, UserRole, init_database

logging.basicConfig(level=logging.INFO)


def main():
    settings = get_settings()
    db = init_database(settings.database_file)
    identity = get_identity_provider(settings, db)

    admin_email = os.getenv("ADMIN_EMAIL", "admin@reviewuplift.com").lower()
    admin_username = os.getenv("ADMIN_USERNAME", "admin")
    admin_password = os.getenv("ADMIN_PASSWORD", "adminpass")

    admin = db.get_user_by_email(admin_email)
    if admin:
        if not admin.is_admin:
            db.update_user(admin.id, role=UserRole.ADMIN.value)
            print(f"Promoted {admin_email} to admin")
        else:
            print("Admin user already exists")
        return

    try:
        auth = identity.sign_up(admin_email, admin_password)
    except IdentityError as e:
        print(f"Could not create admin credentials: {e}")
        raise SystemExit(1)

    user_id = db.create_user(
        auth.uid, admin_email, admin_username,
        role=UserRole.ADMIN.value,
        status=AccountStatus.ACTIVE.value,
    )
    if not user_id:
        identity.delete_account(auth.uid)
        print(f"Username {admin_username} is taken, set ADMIN_USERNAME")
        raise SystemExit(1)
    print(f"Created admin user {admin_email}")


if __name__ == "__main__":
    main()
