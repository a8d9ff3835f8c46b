"""Payroll, attendance and leave tables.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(12, 2), nullable=False, server_default="0")


def _employee_ref() -> list[sa.Column]:
    return [
        sa.Column("employee_id", sa.String(20), sa.ForeignKey("employees.employee_id"), nullable=False),
        sa.Column("employee_name", sa.String(50), nullable=False),
    ]


def _approval() -> list[sa.Column]:
    return [
        sa.Column("approved_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("approved_by_name", sa.String(100), nullable=True),
        sa.Column("approved_date", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "salaries",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_employee_ref(),
        sa.Column("month", sa.Integer, nullable=False),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("basic_salary", sa.Numeric(12, 2), nullable=False),
        *[
            _money(name)
            for name in ("hra", "transport_allowance", "medical_allowance", "bonus", "other_allowance")
        ],
        _money("allowances_total"),
        *[_money(name) for name in ("pf", "esi", "tax", "advance_deduction", "other_deduction")],
        _money("deductions_total"),
        sa.Column("overtime_hours", sa.Numeric(6, 2), nullable=False, server_default="0"),
        _money("overtime_rate"),
        _money("overtime_amount"),
        sa.Column("working_days", sa.Integer, nullable=False),
        sa.Column("present_days", sa.Integer, nullable=False),
        sa.Column("absent_days", sa.Integer, nullable=False, server_default="0"),
        _money("total_salary"),
        _money("net_salary"),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        *_approval(),
        sa.Column("paid_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_method", sa.String(20), nullable=False, server_default="bank_transfer"),
        sa.Column("payment_reference", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("employee_id", "month", "year", name="uq_salaries_employee_period"),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_salaries_month"),
        sa.CheckConstraint("year >= 2020", name="ck_salaries_year"),
        sa.CheckConstraint("basic_salary >= 0", name="ck_salaries_basic_non_negative"),
        sa.CheckConstraint("status IN ('draft', 'approved', 'paid', 'cancelled')", name="ck_salaries_status"),
    )
    op.create_index("ix_salaries_employee_id", "salaries", ["employee_id"])

    op.create_table(
        "advance_salaries",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_employee_ref(),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column("request_date", sa.Date, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        *_approval(),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_method", sa.String(20), nullable=False, server_default="bank_transfer"),
        sa.Column("deduction_schedule", sa.String(20), nullable=False, server_default="single_month"),
        _money("monthly_deduction"),
        _money("total_deducted"),
        _money("remaining_amount"),
        sa.Column("is_fully_deducted", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("deduction_start_month", sa.String(7), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_advance_salaries_amount_positive"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'paid')", name="ck_advance_salaries_status"
        ),
    )
    op.create_index("ix_advance_salaries_employee_id", "advance_salaries", ["employee_id"])

    op.create_table(
        "attendance",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_employee_ref(),
        sa.Column("attendance_date", sa.Date, nullable=False),
        sa.Column("check_in", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_out", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="present"),
        sa.Column("working_hours", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("break_minutes", sa.Integer, nullable=False, server_default="0"),
        sa.Column("overtime", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("location", sa.String(20), nullable=False, server_default="office"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("recorded_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("is_manual_entry", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("employee_id", "attendance_date", name="uq_attendance_employee_date"),
        sa.CheckConstraint("break_minutes >= 0", name="ck_attendance_break_non_negative"),
    )
    op.create_index("ix_attendance_employee_id", "attendance", ["employee_id"])

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_employee_ref(),
        sa.Column("leave_type", sa.String(20), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("days", sa.Numeric(5, 1), nullable=False),
        sa.Column("reason", sa.String(500), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("is_half_day", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("half_day_period", sa.String(20), nullable=True),
        *_approval(),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("handover_notes", sa.Text, nullable=True),
        *_timestamps(),
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_requests_date_order"),
        sa.CheckConstraint("days >= 0.5", name="ck_leave_requests_min_days"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'cancelled')", name="ck_leave_requests_status"
        ),
    )
    op.create_index("ix_leave_requests_employee_id", "leave_requests", ["employee_id"])


def downgrade() -> None:
    op.drop_table("leave_requests")
    op.drop_table("attendance")
    op.drop_table("advance_salaries")
    op.drop_table("salaries")
