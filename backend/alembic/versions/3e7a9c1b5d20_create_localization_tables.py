"""Create localization tables

Revision ID: 3e7a9c1b5d20
Revises:
Create Date: 2026-10-18 10:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3e7a9c1b5d20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_projects_is_active"), "projects", ["is_active"], unique=False)

    op.create_table(
        "features",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("project_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_features_project_id"), "features", ["project_id"], unique=False)
    op.create_index("ix_features_project_active", "features", ["project_id", "is_active"], unique=False)

    op.create_table(
        "languages",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("project_id", sa.UUID(), nullable=False),
        sa.Column("locale", sa.String(length=10), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "locale", name="uq_languages_project_locale"),
    )
    op.create_index("ix_languages_project_active", "languages", ["project_id", "is_active"], unique=False)

    op.create_table(
        "localization_keys",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("feature_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["feature_id"], ["features.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("feature_id", "name", name="uq_localization_keys_feature_name"),
    )
    op.create_index("ix_localization_keys_name", "localization_keys", ["name"], unique=False)
    op.create_index(
        "ix_localization_keys_feature_created", "localization_keys", ["feature_id", "created_at"], unique=False
    )

    op.create_table(
        "translations",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("key_id", sa.UUID(), nullable=False),
        sa.Column("locale", sa.String(length=10), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("is_reviewed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["key_id"], ["localization_keys.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key_id", "locale", name="uq_translations_key_locale"),
    )
    op.create_index("ix_translations_key_id", "translations", ["key_id"], unique=False)
    op.create_index("ix_translations_updated_at", "translations", ["updated_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_translations_updated_at", table_name="translations")
    op.drop_index("ix_translations_key_id", table_name="translations")
    op.drop_table("translations")
    op.drop_index("ix_localization_keys_feature_created", table_name="localization_keys")
    op.drop_index("ix_localization_keys_name", table_name="localization_keys")
    op.drop_table("localization_keys")
    op.drop_index("ix_languages_project_active", table_name="languages")
    op.drop_table("languages")
    op.drop_index("ix_features_project_active", table_name="features")
    op.drop_index(op.f("ix_features_project_id"), table_name="features")
    op.drop_table("features")
    op.drop_index(op.f("ix_projects_is_active"), table_name="projects")
    op.drop_table("projects")
