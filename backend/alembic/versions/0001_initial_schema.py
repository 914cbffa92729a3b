"""create users, entities, rgpd and catalogue tables

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _entity_fk(table: str) -> sa.Column:
    return sa.Column(
        "entity_id",
        sa.Uuid(),
        sa.ForeignKey(
            "entities.id",
            name=f"fk_{table}_entity_id_entities",
            ondelete="CASCADE",
            onupdate="CASCADE",
        ),
        nullable=False,
    )


def upgrade() -> None:
    # --- users & entities ----------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "entities",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_entities"),
    )

    op.create_table(
        "user_entities",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey(
                "users.id",
                name="fk_user_entities_user_id_users",
                ondelete="CASCADE",
                onupdate="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column(
            "entity_id",
            sa.Uuid(),
            sa.ForeignKey(
                "entities.id",
                name="fk_user_entities_entity_id_entities",
                ondelete="CASCADE",
                onupdate="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_user_entities"),
        sa.UniqueConstraint("user_id", "entity_id", name="uq_user_entities_user_entity"),
    )
    op.create_index("ix_user_entities_user_id", "user_entities", ["user_id"])
    op.create_index("ix_user_entities_entity_id", "user_entities", ["entity_id"])

    # --- rgpd ----------------------------------------------------------------
    op.create_table(
        "rgpd_register",
        sa.Column("id", sa.Uuid(), nullable=False),
        _entity_fk("rgpd_register"),
        sa.Column("processing_name", sa.String(), nullable=False),
        sa.Column("purpose", sa.Text(), nullable=False),
        sa.Column("legal_basis", sa.String(), nullable=False),
        sa.Column("data_categories", sa.JSON(), nullable=False),
        sa.Column("data_subjects", sa.JSON(), nullable=False),
        sa.Column("recipients", sa.JSON(), nullable=False),
        sa.Column("retention_period", sa.String(), nullable=True),
        sa.Column("security_measures", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_rgpd_register"),
    )
    op.create_index("ix_rgpd_register_entity_id", "rgpd_register", ["entity_id"])

    op.create_table(
        "rgpd_access_requests",
        sa.Column("id", sa.Uuid(), nullable=False),
        _entity_fk("rgpd_access_requests"),
        sa.Column("requester_name", sa.String(), nullable=False),
        sa.Column("requester_email", sa.String(), nullable=False),
        sa.Column("request_type", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("response", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_rgpd_access_requests"),
    )
    op.create_index(
        "ix_rgpd_access_requests_entity_id", "rgpd_access_requests", ["entity_id"]
    )
    op.create_index(
        "ix_rgpd_access_requests_entity_status",
        "rgpd_access_requests",
        ["entity_id", "status"],
    )

    op.create_table(
        "rgpd_breaches",
        sa.Column("id", sa.Uuid(), nullable=False),
        _entity_fk("rgpd_breaches"),
        sa.Column("breach_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("discovery_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("data_categories_affected", sa.JSON(), nullable=False),
        sa.Column("number_of_subjects", sa.Integer(), nullable=True),
        sa.Column("severity", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("containment_measures", sa.Text(), nullable=True),
        sa.Column("notification_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("authority_notified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("subjects_notified", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_rgpd_breaches"),
    )
    op.create_index("ix_rgpd_breaches_entity_id", "rgpd_breaches", ["entity_id"])
    op.create_index("ix_rgpd_breaches_discovery_date", "rgpd_breaches", ["discovery_date"])

    # --- catalogue -----------------------------------------------------------
    op.create_table(
        "catalogue_endpoints",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("endpoint_type", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_catalogue_endpoints"),
    )
    op.create_index(
        "ix_catalogue_endpoints_endpoint_type", "catalogue_endpoints", ["endpoint_type"]
    )

    op.create_table(
        "catalogue_license_keys",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("license_type", sa.String(), nullable=False),
        sa.Column("key_value", sa.Text(), nullable=True),
        sa.Column("file_path", sa.String(), nullable=True),
        sa.Column("file_name", sa.String(), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("storage_type", sa.String(), nullable=False, server_default="local"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_catalogue_license_keys"),
    )

    op.create_table(
        "catalogue_software_versions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("version", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("release_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_of_life", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_catalogue_software_versions"),
    )

    op.create_table(
        "catalogue_encryption_algorithms",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("algorithm_type", sa.String(), nullable=False),
        sa.Column("key_size", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("standard", sa.String(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_catalogue_encryption_algorithms"),
    )

    op.create_table(
        "catalogue_relations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("source_type", sa.String(), nullable=False),
        sa.Column("source_id", sa.Uuid(), nullable=False),
        sa.Column("target_type", sa.String(), nullable=False),
        sa.Column("target_id", sa.Uuid(), nullable=False),
        sa.Column("relation_type", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_catalogue_relations"),
    )
    op.create_index(
        "ix_catalogue_relations_source", "catalogue_relations", ["source_type", "source_id"]
    )
    op.create_index(
        "ix_catalogue_relations_target", "catalogue_relations", ["target_type", "target_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_catalogue_relations_target", table_name="catalogue_relations")
    op.drop_index("ix_catalogue_relations_source", table_name="catalogue_relations")
    op.drop_table("catalogue_relations")
    op.drop_table("catalogue_encryption_algorithms")
    op.drop_table("catalogue_software_versions")
    op.drop_table("catalogue_license_keys")
    op.drop_index("ix_catalogue_endpoints_endpoint_type", table_name="catalogue_endpoints")
    op.drop_table("catalogue_endpoints")
    op.drop_index("ix_rgpd_breaches_discovery_date", table_name="rgpd_breaches")
    op.drop_index("ix_rgpd_breaches_entity_id", table_name="rgpd_breaches")
    op.drop_table("rgpd_breaches")
    op.drop_index("ix_rgpd_access_requests_entity_status", table_name="rgpd_access_requests")
    op.drop_index("ix_rgpd_access_requests_entity_id", table_name="rgpd_access_requests")
    op.drop_table("rgpd_access_requests")
    op.drop_index("ix_rgpd_register_entity_id", table_name="rgpd_register")
    op.drop_table("rgpd_register")
    op.drop_index("ix_user_entities_entity_id", table_name="user_entities")
    op.drop_index("ix_user_entities_user_id", table_name="user_entities")
    op.drop_table("user_entities")
    op.drop_table("entities")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
