"""Print a bcrypt hash suitable for the ADMIN_PASSWORD setting."""
from __future__ import annotations

import getpass

from locker_rental.core.security import get_password_hash


def main() -> None:
    password = getpass.getpass("Admin password: ")
    if not password:
        raise SystemExit("Password must not be empty")
    print(get_password_hash(password))


if __name__ == "__main__":
    main()
