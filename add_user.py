#!/usr/bin/env python
"""Create a local account: add_user.py EMAIL PASSWORD [NAME]"""
import sys

from taskpad.config import Settings
from taskpad.database import create_db_engine, create_tables, get_session
from taskpad.errors import DuplicateEmail
from taskpad.security import hash_password
from taskpad.stores import IdentityStore


def main(argv):
    if len(argv) < 2:
        print(__doc__.strip())
        return 2
    email, password = argv[0], argv[1]
    name = argv[2] if len(argv) > 2 else email.split("@")[0]

    engine = create_db_engine(Settings.from_env().database_url)
    create_tables(engine)

    with get_session(engine) as db:
        try:
            user = IdentityStore(db).create(name=name, email=email, password_hash=hash_password(password))
        except DuplicateEmail:
            print("User already exists")
            return 1
    print(f"User created: {user.email} ({user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
