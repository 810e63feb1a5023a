"""ORM Models — SQLAlchemy declarative models for persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Models are row shapes only; domain logic lives in core/

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all/autogenerate
"""

from medreminder.models.medication_schedule import MedicationSchedule  # noqa: F401
