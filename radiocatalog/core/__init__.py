"""Core Layer — entities, codecs, registry and parsing; no IO, no DB.

Invariants:
    - No module in core/ imports from services/, infrastructure/, or db/
    - Store and library are reached only through core/store_protocols.py

Design Decisions:
    - Functional core separated from imperative shell (ADR: ExMA impureim sandwich)
"""
