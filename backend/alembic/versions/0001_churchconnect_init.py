"""churchconnect init

Revision ID: 0001_churchconnect_init
Revises:
Create Date: 2026-10-18 09:00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_churchconnect_init"
down_revision = None
branch_labels = None
depends_on = None


def _stamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "churches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("subdomain", sa.String(length=63), nullable=True),
        sa.Column("brand_color", sa.String(length=20), nullable=True, server_default=sa.text("'#6366f1'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_churches_subdomain", "churches", ["subdomain"], unique=True)

    op.create_table(
        "church_users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("church_id", sa.Integer(), sa.ForeignKey("churches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default=sa.text("'volunteer'")),
        sa.Column("api_key_hash", sa.String(length=64), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_church_users_church_id", "church_users", ["church_id"])
    op.create_index("ix_church_users_email", "church_users", ["email"], unique=True)
    op.create_index("ix_church_users_api_key_hash", "church_users", ["api_key_hash"])

    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("church_id", sa.Integer(), sa.ForeignKey("churches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=20), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("surname", sa.String(length=100), nullable=False),
        sa.Column("gender", sa.String(length=10), nullable=False),
        sa.Column("age_group", sa.String(length=20), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("whatsapp_number", sa.String(length=40), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("wedding_anniversary", sa.Date(), nullable=True),
        sa.Column("is_current_member", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("fingerprint_id", sa.String(length=100), nullable=True),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("members.id", ondelete="SET NULL"), nullable=True),
        sa.Column("family_group_id", sa.String(length=64), nullable=True),
        sa.Column("relationship_to_head", sa.String(length=20), nullable=True),
        sa.Column("is_family_head", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_stamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_members_church_id", "members", ["church_id"])
    op.create_index("ix_members_fingerprint_id", "members", ["fingerprint_id"])
    op.create_index("ix_members_parent_id", "members", ["parent_id"])
    op.create_index("ix_members_family_group_id", "members", ["family_group_id"])

    op.create_table(
        "visitors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("church_id", sa.Integer(), sa.ForeignKey("churches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("members.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("gender", sa.String(length=10), nullable=True),
        sa.Column("age_group", sa.String(length=20), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("whatsapp_number", sa.String(length=40), nullable=True),
        sa.Column("birthday", sa.Date(), nullable=True),
        sa.Column("wedding_anniversary", sa.Date(), nullable=True),
        sa.Column("prayer_points", sa.Text(), nullable=True),
        sa.Column("how_did_you_hear_about_us", sa.String(length=100), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("visit_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("follow_up_status", sa.String(length=20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("assigned_to", sa.String(length=100), nullable=True),
        *_stamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_visitors_church_id", "visitors", ["church_id"])
    op.create_index("ix_visitors_member_id", "visitors", ["member_id"])

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("church_id", sa.Integer(), sa.ForeignKey("churches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_type", sa.String(length=30), nullable=False, server_default="sunday_service"),
        sa.Column("organizer", sa.String(length=100), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.String(length=5), nullable=True),
        sa.Column("end_time", sa.String(length=5), nullable=True),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("recurring_pattern", sa.String(length=20), nullable=True),
        sa.Column("max_attendees", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("external_check_in_enabled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("external_check_in_url", sa.String(length=32), nullable=True),
        sa.Column("external_check_in_pin", sa.String(length=6), nullable=True),
        *_stamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_check_in_url"),
    )
    op.create_index("ix_events_church_id", "events", ["church_id"])

    op.create_table(
        "attendance_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("church_id", sa.Integer(), sa.ForeignKey("churches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="SET NULL"), nullable=True),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("members.id", ondelete="CASCADE"), nullable=True),
        sa.Column("visitor_id", sa.Integer(), sa.ForeignKey("visitors.id", ondelete="CASCADE"), nullable=True),
        sa.Column("attendance_date", sa.Date(), nullable=False),
        sa.Column("check_in_time", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("check_in_method", sa.String(length=20), nullable=False, server_default=sa.text("'manual'")),
        sa.Column("is_guest", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("visitor_name", sa.String(length=200), nullable=True),
        sa.Column("visitor_gender", sa.String(length=10), nullable=True),
        sa.Column("visitor_age_group", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "(member_id IS NOT NULL AND visitor_id IS NULL) OR (member_id IS NULL AND visitor_id IS NOT NULL)",
            name="ck_attendance_one_person",
        ),
        sa.UniqueConstraint("member_id", "attendance_date", name="uq_attendance_member_day"),
        sa.UniqueConstraint("visitor_id", "attendance_date", name="uq_attendance_visitor_day"),
    )
    op.create_index("ix_attendance_church_date", "attendance_records", ["church_id", "attendance_date"])
    op.create_index("ix_attendance_records_event_id", "attendance_records", ["event_id"])
    op.create_index("ix_attendance_records_member_id", "attendance_records", ["member_id"])
    op.create_index("ix_attendance_records_visitor_id", "attendance_records", ["visitor_id"])

    op.create_table(
        "follow_up_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("church_id", sa.Integer(), sa.ForeignKey("churches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("member_id", sa.Integer(), sa.ForeignKey("members.id", ondelete="CASCADE"), nullable=False),
        sa.Column("last_contact_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("contact_method", sa.String(length=20), nullable=True),
        sa.Column("consecutive_absences", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("needs_follow_up", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_stamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("member_id"),
    )
    op.create_index("ix_follow_up_records_church_id", "follow_up_records", ["church_id"])

    op.create_table(
        "report_configs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("church_id", sa.Integer(), sa.ForeignKey("churches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("report_type", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("frequency", sa.String(length=20), nullable=False, server_default="on-demand"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("church_users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_report_configs_church_id", "report_configs", ["church_id"])

    op.create_table(
        "report_runs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("church_id", sa.Integer(), sa.ForeignKey("churches.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "report_config_id", sa.Integer(), sa.ForeignKey("report_configs.id", ondelete="CASCADE"), nullable=True
        ),
        sa.Column("run_by_id", sa.Integer(), sa.ForeignKey("church_users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("parameters", sa.JSON(), nullable=False),
        sa.Column("file_path", sa.String(length=500), nullable=True),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_report_runs_church_id", "report_runs", ["church_id"])
    op.create_index("ix_report_runs_report_config_id", "report_runs", ["report_config_id"])


def downgrade() -> None:
    for table in (
        "report_runs",
        "report_configs",
        "follow_up_records",
        "attendance_records",
        "events",
        "visitors",
        "members",
        "church_users",
        "churches",
    ):
        op.drop_table(table)
