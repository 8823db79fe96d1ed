#!/usr/bin/env python3
"""
Root administrator bootstrap.

Creates the first admin principal if none exists and prints its API key to
the terminal. The key is shown once and is not written to any log.

    python bootstrap_admin.py --name root --contact ops@example.com
"""

import argparse
import os
import sys

# Ensure project root is on the path
ROOT_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, ROOT_DIR)

from config import AppSettings  # noqa: E402
from infrastructure.mongo import create_client, ensure_indexes  # noqa: E402
from repositories.principal_repository import PrincipalRepository  # noqa: E402
from repositories.settings_repository import GlobalSettingsStore  # noqa: E402
from services.bootstrap import initialize_system  # noqa: E402
from services.principal_service import PrincipalService  # noqa: E402
from services.principal_tree import PrincipalTree  # noqa: E402
from shared.logging import setup_logging  # noqa: E402


def main():
    parser = argparse.ArgumentParser(description="Create the root administrator")
    parser.add_argument("--name", default="root")
    parser.add_argument("--contact", required=True)
    parser.add_argument("--self-service", choices=["on", "off"], default=None)
    parser.add_argument("--default-permission", action="append", default=[])
    args = parser.parse_args()

    settings = AppSettings()
    setup_logging(settings.logging, api_key_prefix=settings.security.api_key_prefix)
    client = create_client(settings.db.mongodb_uri)
    try:
        db = client[settings.db.db_name]
        ensure_indexes(db)
        repository = PrincipalRepository(db)
        store = GlobalSettingsStore(db)
        principals = PrincipalService(
            repository,
            PrincipalTree(repository, max_size=settings.security.max_cascade_size),
            store,
            api_key_prefix=settings.security.api_key_prefix,
            api_key_bytes=settings.security.api_key_bytes,
        )
        created = initialize_system(
            principals,
            repository,
            store,
            root_name=args.name,
            root_contact=args.contact,
            self_service_enabled=None if args.self_service is None else args.self_service == "on",
            self_service_permissions=args.default_permission,
        )
    finally:
        client.close()

    if created is None:
        print("An administrator already exists; nothing to do.")
        return

    plaintext_key, admin = created
    print("=" * 60)
    print(f"Root administrator created: {admin.name} ({admin.id})")
    print(f"API key: {plaintext_key}")
    print("Store this key now. It cannot be retrieved again.")
    print("=" * 60)


if __name__ == "__main__":
    main()
