"""Create the user, project, milestone, daily report and inventory tables."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "202610180001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(length=80), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="client"),
        sa.Column("name", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=120), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("company", sa.String(length=120), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "project",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="planning"),
        sa.Column("priority", sa.String(length=10), nullable=False, server_default="medium"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("actual_end_date", sa.Date(), nullable=True),
        sa.Column("location", sa.JSON(), nullable=True),
        sa.Column("budget_estimated", sa.Float(), nullable=False, server_default="0"),
        sa.Column("budget_actual", sa.Float(), nullable=False, server_default="0"),
        sa.Column("budget_breakdown", sa.JSON(), nullable=True),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("contractor_id", sa.Integer(), nullable=True),
        sa.Column("architect_id", sa.Integer(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["client_id"], ["user.id"], name="fk_project_client_id"),
        sa.ForeignKeyConstraint(["contractor_id"], ["user.id"], name="fk_project_contractor_id"),
        sa.ForeignKeyConstraint(["architect_id"], ["user.id"], name="fk_project_architect_id"),
        sa.ForeignKeyConstraint(["created_by_id"], ["user.id"], name="fk_project_created_by_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_project_client_id", "project", ["client_id"])
    op.create_index("ix_project_contractor_id", "project", ["contractor_id"])
    op.create_index("ix_project_architect_id", "project", ["architect_id"])

    op.create_table(
        "milestone",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("completed_date", sa.DateTime(), nullable=True),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("approval_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("approved_by_id", sa.Integer(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("approval_comments", sa.Text(), nullable=True),
        sa.Column("assigned_to_id", sa.Integer(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"], name="fk_milestone_project_id"),
        sa.ForeignKeyConstraint(["approved_by_id"], ["user.id"], name="fk_milestone_approved_by_id"),
        sa.ForeignKeyConstraint(["assigned_to_id"], ["user.id"], name="fk_milestone_assigned_to_id"),
        sa.ForeignKeyConstraint(["created_by_id"], ["user.id"], name="fk_milestone_created_by_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_milestone_project_id", "milestone", ["project_id"])

    op.create_table(
        "milestone_dependencies",
        sa.Column("milestone_id", sa.Integer(), nullable=False),
        sa.Column("depends_on_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["milestone_id"], ["milestone.id"], name="fk_milestone_dependencies_milestone_id"),
        sa.ForeignKeyConstraint(["depends_on_id"], ["milestone.id"], name="fk_milestone_dependencies_depends_on_id"),
        sa.PrimaryKeyConstraint("milestone_id", "depends_on_id"),
    )

    op.create_table(
        "daily_report",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("work_summary", sa.Text(), nullable=False),
        sa.Column("workers_on_site", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("hours_worked", sa.Float(), nullable=False, server_default="0"),
        sa.Column("weather", sa.JSON(), nullable=True),
        sa.Column("equipment", sa.JSON(), nullable=True),
        sa.Column("issues", sa.JSON(), nullable=True),
        sa.Column("safety_incidents", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("submitted_by_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"], name="fk_daily_report_project_id"),
        sa.ForeignKeyConstraint(["submitted_by_id"], ["user.id"], name="fk_daily_report_submitted_by_id"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "date", name="uq_daily_report_project_date"),
    )
    op.create_index("ix_daily_report_project_id", "daily_report", ["project_id"])
    op.create_index("ix_daily_report_submitted_by_id", "daily_report", ["submitted_by_id"])

    op.create_table(
        "inventory_item",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False, server_default="other"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit", sa.String(length=40), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False, server_default="0"),
        sa.Column("min_quantity", sa.Float(), nullable=False, server_default="0"),
        sa.Column("unit_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("supplier", sa.JSON(), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("last_restocked", sa.DateTime(), nullable=True),
        sa.Column("added_by_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["project_id"], ["project.id"], name="fk_inventory_item_project_id"),
        sa.ForeignKeyConstraint(["added_by_id"], ["user.id"], name="fk_inventory_item_added_by_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_inventory_item_project_id", "inventory_item", ["project_id"])


def downgrade():
    op.drop_index("ix_inventory_item_project_id", table_name="inventory_item")
    op.drop_table("inventory_item")
    op.drop_index("ix_daily_report_submitted_by_id", table_name="daily_report")
    op.drop_index("ix_daily_report_project_id", table_name="daily_report")
    op.drop_table("daily_report")
    op.drop_table("milestone_dependencies")
    op.drop_index("ix_milestone_project_id", table_name="milestone")
    op.drop_table("milestone")
    op.drop_index("ix_project_architect_id", table_name="project")
    op.drop_index("ix_project_contractor_id", table_name="project")
    op.drop_index("ix_project_client_id", table_name="project")
    op.drop_table("project")
    op.drop_table("user")
