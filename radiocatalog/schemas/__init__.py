"""Pydantic Schemas — validation of stored record shapes.

Invariants:
    - Schemas validate at the store boundary (records read from and written to contexts)
    - Entities never subclass schemas; codecs translate between the two

Design Decisions:
    - Separate from entities: schemas are the wire contract, entities are the in-memory model
"""
