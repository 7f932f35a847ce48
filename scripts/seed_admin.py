"""Bootstrap the first administrator from the command line.

Usage: ADMIN_EMAIL=... ADMIN_PASSWORD=... python -m scripts.seed_admin
"""

import os
import sys

from werkzeug.exceptions import HTTPException

from app import create_app
from models.admin import Admin
from services import admin_auth

ADMIN_NAME = os.getenv("ADMIN_NAME", "Administrator")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")


def main() -> int:
    if not ADMIN_PASSWORD:
        print("ADMIN_PASSWORD must be set.", file=sys.stderr)
        return 1

    app = create_app()
    with app.app_context():
        if Admin.count() > 0:
            print("An administrator already exists; nothing to do.")
            return 0
        try:
            result = admin_auth.register(
                ADMIN_NAME, ADMIN_EMAIL, ADMIN_PASSWORD, acting_admin_id=None
            )
        except HTTPException as exc:
            print(f"Could not create administrator: {exc.description}", file=sys.stderr)
            return 1
        print(f"Admin user created: {result['admin']['email']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
