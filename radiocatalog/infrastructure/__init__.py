"""Infrastructure Layer — store backends, threads, files and cross-cutting concerns.

Invariants:
    - Infrastructure implements core Protocols; core never imports from here
    - Every SQLAlchemy and OS failure is mapped to a CatalogError subclass

Design Decisions:
    - Thin adapters over raw clients (ADR: ExMA single responsibility)
"""
