#!/usr/bin/env python3
"""
Create (or promote) a superuser account in the configured storage backend.
Run from project root: python3 scripts/create_superuser.py USERNAME --full-name "Name"
"""
from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from teamhub.auth import hash_password
from teamhub.config import configure_logging, load_settings
from teamhub.models import UserRole
from teamhub.persistence import StorageError, create_repository

logger = logging.getLogger("create_superuser")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("username")
    parser.add_argument("--full-name", default=None, help="Display name (defaults to the username)")
    parser.add_argument("--email", default=None)
    parser.add_argument("--password", default=None, help="Prompted for when omitted")
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(settings.log_level)
    repo = create_repository(settings)
    try:
        existing = repo.get_user_by_username(args.username)
        if existing is not None:
            repo.update_user(existing.id, {"role": UserRole.SUPERUSER})
            logger.info("Promoted %s to superuser", args.username)
            return 0
        password = args.password or getpass.getpass("Password: ")
        if len(password) < 6:
            logger.error("Password must be at least 6 characters")
            return 1
        user = repo.create_user({
            "username": args.username,
            "password": hash_password(password),
            "full_name": args.full_name or args.username,
            "email": args.email,
            "role": UserRole.SUPERUSER,
            "onboarding_completed": True,
        })
        logger.info("Created superuser %s (id %d)", user.username, user.id)
        return 0
    except StorageError as exc:
        logger.error("Could not create superuser: %s", exc.message)
        return 1
    finally:
        repo.close()


if __name__ == "__main__":
    sys.exit(main())
