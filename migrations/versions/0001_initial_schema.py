"""Initial schema: projects, build configs, build outputs, published sites

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-16 10:00:00.000000

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "build_configs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "project_id",
            sa.String(36),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("framework", sa.String(20), nullable=False),
        sa.Column("styling", sa.String(20), nullable=False),
        sa.Column("include_typescript", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "build_outputs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "project_id",
            sa.String(36),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "build_config_id", sa.String(36), sa.ForeignKey("build_configs.id"), nullable=False
        ),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("files", sa.JSON(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("verification", sa.String(20), nullable=True),
        sa.Column("preview_url", sa.String(512), nullable=True),
        sa.Column("preview_token", sa.String(128), nullable=True),
        sa.Column("preview_deployment_id", sa.String(255), nullable=True),
        sa.Column("preview_vercel_project_id", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_build_outputs_project_id", "build_outputs", ["project_id"])
    op.create_index("ix_build_outputs_status", "build_outputs", ["status"])

    op.create_table(
        "published_sites",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "project_id",
            sa.String(36),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column(
            "build_output_id", sa.String(36), sa.ForeignKey("build_outputs.id"), nullable=False
        ),
        sa.Column("slug", sa.String(63), nullable=False, unique=True),
        sa.Column("vercel_project_id", sa.String(255), nullable=False),
        sa.Column("vercel_project_name", sa.String(255), nullable=False),
        sa.Column("deployment_id", sa.String(255), nullable=False),
        sa.Column("url", sa.String(512), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("published_sites")
    op.drop_index("ix_build_outputs_status", table_name="build_outputs")
    op.drop_index("ix_build_outputs_project_id", table_name="build_outputs")
    op.drop_table("build_outputs")
    op.drop_table("build_configs")
    op.drop_table("projects")
