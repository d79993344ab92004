"""Initial Learnix schema

Revision ID: 001
Revises:
Create Date: 2026-10-17

Tables created:
  - users, external_auths          Accounts and linked OAuth identities
  - courses, course_sections,
    lessons, lesson_resources      Course structure
  - enrollments                    One row per (user, course), with lesson progress
  - quizzes, questions,
    quiz_submissions               Quizzes and learner attempts
  - payments                       Mock checkout sessions
  - notifications                  In-app notifications

PostgreSQL ENUM types store the lowercase enum values used by the models.

Downgrade: drops all tables and ENUM types in reverse dependency order.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUM_TYPES: dict[str, tuple[str, ...]] = {
    "user_role": ("student", "instructor", "admin"),
    "auth_provider": ("google", "github"),
    "course_level": ("beginner", "intermediate", "advanced"),
    "course_status": ("draft", "pending", "published", "rejected"),
    "lesson_type": ("standard", "quiz"),
    "resource_type": ("file", "link"),
    "quiz_status": ("draft", "ai_generated", "approved"),
    "question_type": ("multiple_choice", "multi_select", "true_false", "short_answer"),
    "payment_status": ("pending", "completed", "failed"),
    "notification_level": ("info", "success", "warning", "error"),
    "notification_type": (
        "enrollment",
        "payment_success",
        "payment_failed",
        "course_approved",
        "course_rejected",
        "course_submitted",
        "course_completed",
        "course_unenrollment",
        "quiz_submitted",
    ),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(name=name, create_type=False)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        nullable=False,
        server_default=sa.text("gen_random_uuid()"),
    )


def _fk(column: str, target: str, *, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        column,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def _timestamp(name: str, *, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()"))


# ─────────────────────────────────────────────────────────────────────────────
#  UPGRADE
# ─────────────────────────────────────────────────────────────────────────────

def upgrade() -> None:
    # ── 1. PostgreSQL ENUM types ──────────────────────────────────────────────
    # PostgreSQL has no CREATE TYPE IF NOT EXISTS, so each runs in a DO/EXCEPTION block.
    for name, values in ENUM_TYPES.items():
        labels = ", ".join(f"'{v}'" for v in values)
        op.execute(
            f"""
            DO $$ BEGIN
                CREATE TYPE {name} AS ENUM ({labels});
            EXCEPTION WHEN duplicate_object THEN NULL;
            END $$;
            """
        )

    # ── 2. users ──────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("full_name", sa.String(150), nullable=False),
        sa.Column("role", _enum("user_role"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_email_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("activation_token", sa.String(64), nullable=True),
        _timestamp("activation_token_expires_at", nullable=True),
        sa.Column("password_reset_token", sa.String(64), nullable=True),
        _timestamp("password_reset_token_expires_at", nullable=True),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("oauth_avatar_url", sa.String(500), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_activation_token", "users", ["activation_token"])
    op.create_index("ix_users_password_reset_token", "users", ["password_reset_token"])
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "external_auths",
        _uuid_pk(),
        sa.Column("provider", _enum("auth_provider"), nullable=False),
        sa.Column("provider_id", sa.String(255), nullable=False),
        _fk("user_id", "users.id"),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_external_auths"),
        sa.UniqueConstraint("provider", "provider_id", name="uq_external_auths_provider_id"),
    )

    # ── 3. course structure ───────────────────────────────────────────────────
    op.create_table(
        "courses",
        _uuid_pk(),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("thumbnail_url", sa.String(500), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("level", _enum("course_level"), nullable=False),
        sa.Column("status", _enum("course_status"), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("tags", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        _fk("instructor_id", "users.id"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_courses"),
    )
    op.create_index("ix_courses_instructor_id", "courses", ["instructor_id"])
    op.create_index("ix_courses_status", "courses", ["status"])
    op.create_index("ix_courses_created_at", "courses", ["created_at"])

    op.create_table(
        "course_sections",
        _uuid_pk(),
        _fk("course_id", "courses.id"),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_course_sections"),
    )
    op.create_index("ix_course_sections_course_id", "course_sections", ["course_id"])

    op.create_table(
        "lessons",
        _uuid_pk(),
        _fk("section_id", "course_sections.id"),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("type", _enum("lesson_type"), nullable=False, server_default=sa.text("'standard'")),
        sa.Column("content", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("ide_config", postgresql.JSONB(), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_free_preview", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_lessons"),
    )
    op.create_index("ix_lessons_section_id", "lessons", ["section_id"])

    op.create_table(
        "lesson_resources",
        _uuid_pk(),
        _fk("lesson_id", "lessons.id"),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("type", _enum("resource_type"), nullable=False),
        sa.Column("url", sa.String(1000), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_lesson_resources"),
    )

    # ── 4. enrollments ────────────────────────────────────────────────────────
    op.create_table(
        "enrollments",
        _uuid_pk(),
        _fk("user_id", "users.id"),
        _fk("course_id", "courses.id"),
        sa.Column(
            "completed_lesson_ids",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        _timestamp("completed_at", nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("archived_at", nullable=True),
        _timestamp("enrolled_at"),
        _timestamp("last_accessed_at"),
        sa.PrimaryKeyConstraint("id", name="pk_enrollments"),
        sa.UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),
    )
    op.create_index("ix_enrollments_user_id", "enrollments", ["user_id"])
    op.create_index("ix_enrollments_course_id", "enrollments", ["course_id"])
    op.create_index("ix_enrollments_enrolled_at", "enrollments", ["enrolled_at"])

    # ── 5. quizzes ────────────────────────────────────────────────────────────
    op.create_table(
        "quizzes",
        _uuid_pk(),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _fk("course_id", "courses.id", nullable=True),
        _fk("lesson_id", "lessons.id", nullable=True, ondelete="SET NULL"),
        sa.Column("status", _enum("quiz_status"), nullable=False, server_default=sa.text("'draft'")),
        _fk("created_by", "users.id", nullable=True, ondelete="SET NULL"),
        sa.Column("ai_generated", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_quizzes"),
    )
    op.create_index("ix_quizzes_lesson_id", "quizzes", ["lesson_id"])
    op.create_index("ix_quizzes_created_by", "quizzes", ["created_by"])

    op.create_table(
        "questions",
        _uuid_pk(),
        _fk("quiz_id", "quizzes.id"),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("options", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("correct_answer", sa.Text(), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column(
            "type",
            _enum("question_type"),
            nullable=False,
            server_default=sa.text("'multiple_choice'"),
        ),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("image_url", sa.String(500), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_questions"),
    )
    op.create_index("ix_questions_quiz_id", "questions", ["quiz_id"])

    op.create_table(
        "quiz_submissions",
        _uuid_pk(),
        _fk("quiz_id", "quizzes.id"),
        _fk("user_id", "users.id"),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("total_points", sa.Float(), nullable=True),
        sa.Column("percentage", sa.Float(), nullable=True),
        sa.Column("responses", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        _timestamp("created_at"),
        _timestamp("completed_at", nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_quiz_submissions"),
    )
    op.create_index("ix_quiz_submissions_quiz_user", "quiz_submissions", ["quiz_id", "user_id"])

    # ── 6. payments ───────────────────────────────────────────────────────────
    op.create_table(
        "payments",
        _uuid_pk(),
        _fk("user_id", "users.id"),
        _fk("course_id", "courses.id"),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'USD'")),
        sa.Column("status", _enum("payment_status"), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("transaction_id", sa.String(64), nullable=True),
        sa.Column(
            "payment_method",
            sa.String(32),
            nullable=False,
            server_default=sa.text("'credit_card'"),
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_payments"),
    )
    op.create_index("ix_payments_user_id", "payments", ["user_id"])

    # ── 7. notifications ──────────────────────────────────────────────────────
    op.create_table(
        "notifications",
        _uuid_pk(),
        _fk("user_id", "users.id"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", _enum("notification_level"), nullable=False, server_default=sa.text("'info'")),
        sa.Column("notification_type", _enum("notification_type"), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("link", sa.String(500), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_notifications"),
    )
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "is_read"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])


# ─────────────────────────────────────────────────────────────────────────────
#  DOWNGRADE
# ─────────────────────────────────────────────────────────────────────────────

def downgrade() -> None:
    # Reverse FK dependency order
    for table in (
        "notifications",
        "payments",
        "quiz_submissions",
        "questions",
        "quizzes",
        "enrollments",
        "lesson_resources",
        "lessons",
        "course_sections",
        "courses",
        "external_auths",
        "users",
    ):
        op.drop_table(table)

    for name in reversed(ENUM_TYPES):
        op.execute(f"DROP TYPE IF EXISTS {name}")
