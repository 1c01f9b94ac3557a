"""ORM Models — SQLAlchemy declarative models for persisted catalog contexts.

Invariants:
    - All models inherit from Base (db/base.py)
    - One row per record: (context_name, position) is unique

Design Decisions:
    - Models imported here so Base.metadata is complete before create_all()
      or alembic autogenerate runs (ADR: standard SQLAlchemy pattern)
"""

from radiocatalog.models.config_record import ConfigRecord  # noqa: F401
