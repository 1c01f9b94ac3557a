"""Database Infrastructure — SQLAlchemy declarative Base for the catalog tables.

Invariants:
    - One engine per store (owned by DatabaseSessionManager)
    - All sessions are synchronous (Session): catalog calls block the control thread

Design Decisions:
    - SQLite by default, PostgreSQL (psycopg2, "postgres" extra) when
      CATALOG_DATABASE_URL points there
"""
