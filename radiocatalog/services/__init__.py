"""Services Layer — catalog facade, synchronizer, discovery and subsystem gates.

Invariants:
    - Services orchestrate core objects against injected Protocol implementations
    - Each service owns one concern: load/sync, discovery, lazy init

Design Decisions:
    - One file per service for locality (ADR: ExMA no god objects)
"""
