"""
Setup database schema for Professor AI.

Creates the knowledge-base tables from the SQLAlchemy models. Works with
the default SQLite file as well as PostgreSQL/Supabase.

Usage:
    python scripts/setup_database.py
    python scripts/setup_database.py --drop-first
"""

import sys
import argparse
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import inspect, text

from professor_ai.db import Base
from professor_ai.db.session import DATABASE_URL, engine

# Fix Unicode encoding for Windows
if sys.platform == 'win32':
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')


def main():
    """Setup database schema"""
    parser = argparse.ArgumentParser(description="Create Professor AI database tables")
    parser.add_argument(
        "--drop-first",
        action="store_true",
        help="Drop existing tables before creating them (destroys data)"
    )
    args = parser.parse_args()

    print("=" * 60)
    print("Professor AI Database Schema Setup")
    print("=" * 60)

    print("\n📦 Connecting to database...")
    print(f"   URL: {DATABASE_URL.split('@')[1] if '@' in DATABASE_URL else DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            print("✅ Connected successfully!\n")

        if args.drop_first:
            print("🗑️  Dropping existing tables...")
            Base.metadata.drop_all(engine)

        print("🔨 Creating tables and indexes...")
        Base.metadata.create_all(engine)
        print("✅ Schema created successfully!\n")

        print("📊 Verifying tables...")
        tables = inspect(engine).get_table_names()
        if tables:
            print(f"   Found {len(tables)} tables:")
            for table in tables:
                print(f"     - {table}")
        else:
            print("   ⚠️  No tables found!")

        print("\n" + "=" * 60)
        print("✅ Database setup complete!")
        print("=" * 60)
        print("\nNext steps:")
        print("  1. Start the API: python scripts/start_api.py")
        print("  2. Embed uploaded documents: python scripts/generate_embeddings.py")
        print("")

        return 0

    except Exception as e:
        print(f"\n❌ ERROR: {e}")
        print("\nTroubleshooting:")
        print("  1. Check DATABASE_URL in .env is correct")
        print("  2. For PostgreSQL: install the postgres extra (psycopg2-binary)")
        print("  3. For Supabase: Check your connection string from dashboard")
        return 1


if __name__ == "__main__":
    sys.exit(main())
