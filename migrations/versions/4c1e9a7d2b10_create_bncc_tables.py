"""create bncc tracker tables

Revision ID: 4c1e9a7d2b10
Revises:
Create Date: 2025-03-03 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "4c1e9a7d2b10"
down_revision = None
branch_labels = None
depends_on = None

RECORD_STATUS = sa.Enum("active", "inactive", name="recordstatus", native_enum=False)


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column(
            "role",
            sa.Enum("admin", "coordenador", "professor", name="roleenum", native_enum=False),
            nullable=False,
        ),
        sa.Column("status", RECORD_STATUS, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "classes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("grade", sa.String(length=100), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column(
            "shift",
            sa.Enum("matutino", "vespertino", "integral", "noturno", name="shiftenum", native_enum=False),
            nullable=True,
        ),
        sa.Column("status", RECORD_STATUS, nullable=False),
        sa.Column("teacher_ids", sa.JSON(), nullable=True),
        sa.Column("is_remediation", sa.Boolean(), nullable=True),
        sa.Column("focus_skills", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "students",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("class_id", sa.String(length=36), sa.ForeignKey("classes.id"), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("registration_number", sa.String(length=50), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("parent_name", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("status", RECORD_STATUS, nullable=False),
        sa.Column("remediation_entry_date", sa.Date(), nullable=True),
        sa.Column("remediation_exit_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "skills",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("subject", sa.String(length=100), nullable=False),
    )
    op.create_table(
        "assessments",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("skill_id", sa.String(length=36), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "nao_atingiu",
                "em_desenvolvimento",
                "atingiu",
                "superou",
                name="assessmentstatus",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column("term", sa.String(length=20), nullable=True),
        sa.Column("participation_score", sa.Float(), nullable=True),
        sa.Column("behavior_score", sa.Float(), nullable=True),
        sa.Column("exam_score", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_assessments_student_id", "assessments", ["student_id"])
    op.create_index("ix_assessments_skill_id", "assessments", ["skill_id"])
    op.create_table(
        "class_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("attendance", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_class_logs_class_id", "class_logs", ["class_id"])


def downgrade():
    op.drop_index("ix_class_logs_class_id", table_name="class_logs")
    op.drop_table("class_logs")
    op.drop_index("ix_assessments_skill_id", table_name="assessments")
    op.drop_index("ix_assessments_student_id", table_name="assessments")
    op.drop_table("assessments")
    op.drop_table("skills")
    op.drop_table("students")
    op.drop_table("classes")
    op.drop_table("users")
