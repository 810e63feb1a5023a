"""Core Layer — pure scheduling logic, no IO, no DB.

Invariants:
    - No module in core/ imports from services/, infrastructure/, models/ or db/
    - All functions are pure and deterministic for fixed inputs (rule, now, zone)
    - repository_protocols.py only declares async boundaries; nothing here awaits

Design Decisions:
    - Functional core separated from imperative shell: the lifecycle manager
      orchestrates IO around the pure occurrence calculator
"""
