"""Additional index creation for query performance.

These indexes complement the basic indexes defined in SQLModel Field()
declarations. They are composite indexes for the read model's lookups
that cannot be expressed via Field(index=True).

Call create_additional_indexes() after Database.create_all().
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import text

if TYPE_CHECKING:
    from sqlalchemy import Engine


ADDITIONAL_INDEXES = {
    # Field lookup by owning class and property name
    "idx_properties_class_name": "properties(class_id, name)",
    # Ordered enum value listing
    "idx_enum_values_enum_value": "enum_values(enum_id, value)",
    # Edge lookup in both directions
    "idx_relationships_source_type": "relationships(source_class_id, relationship_type)",
    "idx_relationships_target_type": "relationships(target_class_id, relationship_type)",
    # Class lookup by name within package order
    "idx_classes_name_package": "classes(name, package)",
}


def create_additional_indexes(engine: Engine) -> None:
    """
    Create additional composite indexes.

    Call this after Database.create_all() to add performance indexes
    that cannot be expressed via SQLModel Field() declarations.
    """
    with engine.connect() as conn:
        for name, target in ADDITIONAL_INDEXES.items():
            conn.execute(text(f"CREATE INDEX IF NOT EXISTS {name} ON {target}"))
        conn.commit()


def drop_additional_indexes(engine: Engine) -> None:
    """Drop additional indexes (for testing/reset)."""
    with engine.connect() as conn:
        for name in ADDITIONAL_INDEXES:
            conn.execute(text(f"DROP INDEX IF EXISTS {name}"))
        conn.commit()
