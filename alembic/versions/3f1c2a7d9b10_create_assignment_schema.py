"""create assignment schema

Revision ID: 3f1c2a7d9b10
Revises:
Create Date: 2026-10-19 10:12:41.118302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a7d9b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("mail_html", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_last_name", "users", ["last_name"])

    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("fullname", sa.String(255), nullable=False),
        sa.Column("shortname", sa.String(100), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("time_modified", sa.Integer(), nullable=False),
    )

    op.create_table(
        "enrollments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),
    )
    op.create_index("ix_enrollments_user_id", "enrollments", ["user_id"])
    op.create_index("ix_enrollments_course_id", "enrollments", ["course_id"])

    op.create_table(
        "scales",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("scale", sa.Text(), nullable=False),
    )

    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("intro", sa.Text(), nullable=True),
        sa.Column("grade", sa.Integer(), nullable=False),
        sa.Column("due_date", sa.Integer(), nullable=False),
        sa.Column("allow_submissions_from_date", sa.Integer(), nullable=False),
        sa.Column("prevent_late_submissions", sa.Boolean(), nullable=False),
        sa.Column("submission_drafts", sa.Boolean(), nullable=False),
        sa.Column("online_text_submission", sa.Boolean(), nullable=False),
        sa.Column("submission_comments", sa.Boolean(), nullable=False),
        sa.Column("send_notifications", sa.Boolean(), nullable=False),
        sa.Column("time_modified", sa.Integer(), nullable=False),
    )
    op.create_index("ix_assignments_course_id", "assignments", ["course_id"])

    op.create_table(
        "assign_plugin_config",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("assignment_id", sa.Integer(), sa.ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("plugin", sa.String(50), nullable=False),
        sa.Column("subtype", sa.String(50), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.UniqueConstraint("assignment_id", "plugin", "subtype", "name", name="uq_plugin_config"),
    )
    op.create_index("ix_assign_plugin_config_assignment_id", "assign_plugin_config", ["assignment_id"])

    op.create_table(
        "assign_submissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("assignment_id", sa.Integer(), sa.ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("time_created", sa.Integer(), nullable=False),
        sa.Column("time_modified", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("online_text", sa.Text(), nullable=False),
        sa.Column("online_format", sa.Integer(), nullable=False),
        sa.Column("comment_text", sa.Text(), nullable=False),
        sa.Column("comment_format", sa.Integer(), nullable=False),
        sa.Column("num_files", sa.Integer(), nullable=False),
        sa.UniqueConstraint("assignment_id", "user_id", name="uq_submission_assignment_user"),
    )
    op.create_index("ix_assign_submissions_assignment_id", "assign_submissions", ["assignment_id"])
    op.create_index("ix_assign_submissions_user_id", "assign_submissions", ["user_id"])

    op.create_table(
        "assign_grades",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("assignment_id", sa.Integer(), sa.ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("grader_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("grade", sa.Float(), nullable=False),
        sa.Column("feedback_text", sa.Text(), nullable=False),
        sa.Column("feedback_format", sa.Integer(), nullable=False),
        sa.Column("num_feedback_files", sa.Integer(), nullable=False),
        sa.Column("locked", sa.Boolean(), nullable=False),
        sa.Column("time_created", sa.Integer(), nullable=False),
        sa.Column("time_modified", sa.Integer(), nullable=False),
        sa.UniqueConstraint("assignment_id", "user_id", name="uq_grade_assignment_user"),
    )
    op.create_index("ix_assign_grades_assignment_id", "assign_grades", ["assignment_id"])
    op.create_index("ix_assign_grades_user_id", "assign_grades", ["user_id"])

    op.create_table(
        "capability_overrides",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("assignment_id", sa.Integer(), sa.ForeignKey("assignments.id", ondelete="CASCADE"), nullable=True),
        sa.Column("capability", sa.String(100), nullable=False),
        sa.Column("allow", sa.Boolean(), nullable=False),
        sa.UniqueConstraint("role", "course_id", "assignment_id", "capability", name="uq_capability_override"),
    )

    op.create_table(
        "files",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("assignment_id", sa.Integer(), sa.ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("component", sa.String(100), nullable=False),
        sa.Column("filearea", sa.String(50), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("filepath", sa.String(255), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("mimetype", sa.String(100), nullable=True),
        sa.Column("filesize", sa.Integer(), nullable=False),
        sa.Column("content", sa.LargeBinary(), nullable=False),
        sa.Column("time_created", sa.Integer(), nullable=False),
        sa.UniqueConstraint(
            "assignment_id", "component", "filearea", "item_id", "filepath", "filename", name="uq_file_path"
        ),
    )
    op.create_index("ix_files_assignment_id", "files", ["assignment_id"])

    op.create_table(
        "user_preferences",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("value", sa.String(255), nullable=False),
        sa.UniqueConstraint("user_id", "name", name="uq_user_preference"),
    )

    op.create_table(
        "log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("time", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("assignment_id", sa.Integer(), nullable=False),
        sa.Column("module", sa.String(20), nullable=False),
        sa.Column("action", sa.String(40), nullable=False),
        sa.Column("url", sa.String(100), nullable=False),
        sa.Column("info", sa.String(255), nullable=False),
    )
    op.create_index("ix_log_time", "log", ["time"])
    op.create_index("ix_log_assignment_id", "log", ["assignment_id"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("component", sa.String(100), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("user_from_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_to_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("full_message", sa.Text(), nullable=False),
        sa.Column("full_message_html", sa.Text(), nullable=False),
        sa.Column("small_message", sa.String(255), nullable=False),
        sa.Column("context_url", sa.String(255), nullable=False),
        sa.Column("context_url_name", sa.String(255), nullable=False),
        sa.Column("time_created", sa.Integer(), nullable=False),
    )

    op.create_table(
        "grade_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("item_module", sa.String(30), nullable=False),
        sa.Column("item_instance", sa.Integer(), nullable=False),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("grade_type", sa.Integer(), nullable=False),
        sa.Column("grade_max", sa.Float(), nullable=False),
        sa.Column("grade_min", sa.Float(), nullable=False),
        sa.Column("scale_id", sa.Integer(), nullable=True),
        sa.UniqueConstraint("item_module", "item_instance", name="uq_grade_item_instance"),
    )

    op.create_table(
        "grade_grades",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("item_id", sa.Integer(), sa.ForeignKey("grade_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("raw_grade", sa.Float(), nullable=True),
        sa.Column("final_grade", sa.Float(), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("feedback_format", sa.Integer(), nullable=False),
        sa.Column("user_modified", sa.Integer(), nullable=True),
        sa.Column("date_submitted", sa.Integer(), nullable=True),
        sa.Column("date_graded", sa.Integer(), nullable=True),
        sa.UniqueConstraint("item_id", "user_id", name="uq_grade_grades_item_user"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        "grade_grades",
        "grade_items",
        "messages",
        "log",
        "user_preferences",
        "files",
        "capability_overrides",
        "assign_grades",
        "assign_submissions",
        "assign_plugin_config",
        "assignments",
        "scales",
        "enrollments",
        "courses",
        "users",
    ):
        op.drop_table(table)
