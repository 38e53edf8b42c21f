#!/usr/bin/env python3
"""
Initialize Glorda Database
==========================

Applies app/repositories/schema.sql to DATABASE_URL and seeds the default
admin account (DEFAULT_ADMIN_EMAIL / DEFAULT_ADMIN_PASSWORD).

The schema uses CREATE TABLE IF NOT EXISTS, so running it twice is harmless.

Usage:
    cd backend && source venv/bin/activate
    python scripts/init_db.py [--skip-admin]
"""

import os
import sys
import argparse
from pathlib import Path

# Add backend to path
BACKEND_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BACKEND_DIR))

from dotenv import load_dotenv

load_dotenv(BACKEND_DIR / '.env')

SCHEMA_PATH = BACKEND_DIR / 'app' / 'repositories' / 'schema.sql'


def apply_schema():
    from app.core.database import get_db_connection_with_retry

    print(f"📄 Applying schema: {SCHEMA_PATH.name}")
    sql = SCHEMA_PATH.read_text(encoding='utf-8')

    conn = get_db_connection_with_retry()
    cursor = conn.cursor()
    try:
        cursor.execute(sql)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cursor.close()
        conn.close()

    print("✅ Schema applied")


def seed_admin():
    from app.core.config import settings
    from app.repositories.postgres_storage import PostgresStorage
    from app.services.auth_service import AuthService

    storage = PostgresStorage()
    admin = AuthService(storage=storage).ensure_default_admin(
        settings.DEFAULT_ADMIN_EMAIL,
        settings.DEFAULT_ADMIN_PASSWORD,
        settings.DEFAULT_ADMIN_NAME,
    )

    if admin:
        print(f"👤 Default admin created: {admin.email}")
    else:
        print(f"👤 Default admin already exists: {settings.DEFAULT_ADMIN_EMAIL}")


def main():
    parser = argparse.ArgumentParser(description='Initialize the Glorda database')
    parser.add_argument('--skip-admin', action='store_true', help='Only apply the schema')
    args = parser.parse_args()

    if not os.getenv('DATABASE_URL'):
        print("❌ DATABASE_URL environment variable not set")
        sys.exit(1)

    print("=" * 60)
    print("🚀 GLORDA DATABASE INIT")
    print("=" * 60)

    apply_schema()
    if not args.skip_admin:
        seed_admin()

    print("\n🎉 Done")


if __name__ == "__main__":
    main()
