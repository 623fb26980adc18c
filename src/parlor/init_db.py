"""Create all tables directly, without alembic (local SQLite setups)."""

from parlor.db.session import create_tables

if __name__ == "__main__":
    create_tables()
    print("Database initialized.")
