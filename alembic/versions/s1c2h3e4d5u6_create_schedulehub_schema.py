"""create_schedulehub_schema

Revision ID: s1c2h3e4d5u6
Revises:
Create Date: 2026-10-19 09:00:00.000000

스케줄링 스키마 생성: 작업자 디렉터리, 스테이션, 시프트 템플릿, 스케줄, 시프트, 교대 요청.
시프트 중복 방지 트리거 추가.
Create the scheduling schema: worker directory, stations, shift templates,
schedules, shifts and shift trades. Add the overlapping-shift trigger.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = 's1c2h3e4d5u6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


OVERLAP_FUNCTION_SQL: str = """
CREATE OR REPLACE FUNCTION prevent_overlapping_shifts() RETURNS trigger AS $$
DECLARE
    existing RECORD;
BEGIN
    IF NEW.employee_id IS NULL OR NEW.status = 'cancelled' THEN
        RETURN NEW;
    END IF;
    SELECT s.start_time, s.end_time INTO existing
    FROM shifts s
    WHERE s.employee_id = NEW.employee_id
      AND s.shift_date = NEW.shift_date
      AND s.status <> 'cancelled'
      AND s.id <> NEW.id
      AND (s.start_time - time '00:00')
          < (NEW.end_time - time '00:00')
            + CASE WHEN NEW.end_time <= NEW.start_time THEN interval '24 hours' ELSE interval '0' END
      AND (NEW.start_time - time '00:00')
          < (s.end_time - time '00:00')
            + CASE WHEN s.end_time <= s.start_time THEN interval '24 hours' ELSE interval '0' END
    LIMIT 1;
    IF FOUND THEN
        RAISE EXCEPTION 'Employee % already has a shift from % to % on %',
            NEW.employee_id, existing.start_time, existing.end_time, NEW.shift_date
            USING ERRCODE = 'check_violation';
    END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql
"""

OVERLAP_TRIGGER_SQL: str = """
CREATE TRIGGER trg_prevent_overlapping_shifts
BEFORE INSERT OR UPDATE OF employee_id, shift_date, start_time, end_time, status ON shifts
FOR EACH ROW EXECUTE FUNCTION prevent_overlapping_shifts()
"""


def upgrade() -> None:
    # workers — HR 시스템 소유 작업자 디렉터리 (Worker directory owned by HR)
    op.create_table(
        'workers',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', UUID(as_uuid=True), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('employment_type', sa.String(30), server_default='full_time', nullable=False),
        sa.Column('employment_status', sa.String(30), server_default='active', nullable=False),
        sa.Column('is_schedulable', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_workers_organization_id', 'workers', ['organization_id'])

    op.create_table(
        'roles',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', UUID(as_uuid=True), nullable=False),
        sa.Column('role_name', sa.String(100), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
    )
    op.create_index('ix_roles_organization_id', 'roles', ['organization_id'])

    op.create_table(
        'worker_roles',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', UUID(as_uuid=True), nullable=False),
        sa.Column('worker_id', UUID(as_uuid=True), sa.ForeignKey('workers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role_id', UUID(as_uuid=True), sa.ForeignKey('roles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('removed_date', sa.Date(), nullable=True),
    )
    op.create_index('ix_worker_roles_role', 'worker_roles', ['role_id', 'worker_id'])

    # worker_availability — recurring(요일) 또는 one_time(특정일) 근무 가능 시간
    op.create_table(
        'worker_availability',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', UUID(as_uuid=True), nullable=False),
        sa.Column('worker_id', UUID(as_uuid=True), sa.ForeignKey('workers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('availability_type', sa.String(20), server_default='recurring', nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=True),
        sa.Column('specific_date', sa.Date(), nullable=True),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('effective_from', sa.Date(), nullable=True),
        sa.Column('effective_to', sa.Date(), nullable=True),
        sa.Column('priority', sa.String(20), server_default='available', nullable=False),
    )
    op.create_index('ix_worker_availability_worker', 'worker_availability', ['worker_id'])

    # stations — 스테이션 및 역할별 필요 인원 (Stations and per-role requirements)
    op.create_table(
        'stations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', UUID(as_uuid=True), nullable=False),
        sa.Column('station_name', sa.String(100), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_stations_organization_id', 'stations', ['organization_id'])

    op.create_table(
        'station_role_requirements',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', UUID(as_uuid=True), nullable=False),
        sa.Column('station_id', UUID(as_uuid=True), sa.ForeignKey('stations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role_id', UUID(as_uuid=True), sa.ForeignKey('roles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('min_workers', sa.Integer(), server_default='1', nullable=False),
        sa.Column('max_workers', sa.Integer(), nullable=True),
        sa.Column('priority', sa.String(20), server_default='normal', nullable=False),
        sa.UniqueConstraint('station_id', 'role_id', name='uq_station_role_requirement'),
    )

    # shift_templates — 재사용 시프트 정의 (Reusable shift definitions)
    op.create_table(
        'shift_templates',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', UUID(as_uuid=True), nullable=False),
        sa.Column('template_name', sa.String(100), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('break_duration_minutes', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_overnight', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('required_workers', sa.Integer(), server_default='1', nullable=False),
        sa.Column('days_of_week', JSONB(), nullable=True),
        sa.Column('role_id', UUID(as_uuid=True), sa.ForeignKey('roles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_shift_templates_organization_id', 'shift_templates', ['organization_id'])

    op.create_table(
        'shift_template_stations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('template_id', UUID(as_uuid=True), sa.ForeignKey('shift_templates.id', ondelete='CASCADE'), nullable=False),
        sa.Column('station_id', UUID(as_uuid=True), sa.ForeignKey('stations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.UniqueConstraint('template_id', 'station_id', name='uq_shift_template_station'),
    )

    # schedules — draft → published
    op.create_table(
        'schedules',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', UUID(as_uuid=True), nullable=False),
        sa.Column('schedule_name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), server_default='draft', nullable=False),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('published_by', UUID(as_uuid=True), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), nullable=True),
        sa.Column('updated_by', UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('end_date > start_date', name='ck_schedules_date_range'),
    )
    op.create_index('ix_schedules_org_dates', 'schedules', ['organization_id', 'start_date', 'end_date'])

    # shifts — 작업자 슬롯 및 근무 시간 기록 (Worker slots and time tracking)
    op.create_table(
        'shifts',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', UUID(as_uuid=True), nullable=False),
        sa.Column('schedule_id', UUID(as_uuid=True), sa.ForeignKey('schedules.id', ondelete='CASCADE'), nullable=True),
        sa.Column('template_id', UUID(as_uuid=True), sa.ForeignKey('shift_templates.id', ondelete='SET NULL'), nullable=True),
        sa.Column('station_id', UUID(as_uuid=True), sa.ForeignKey('stations.id', ondelete='SET NULL'), nullable=True),
        sa.Column('role_id', UUID(as_uuid=True), sa.ForeignKey('roles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('employee_id', UUID(as_uuid=True), sa.ForeignKey('workers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('shift_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('break_minutes', sa.Integer(), server_default='0', nullable=False),
        sa.Column('actual_break_minutes', sa.Integer(), nullable=True),
        sa.Column('clock_in_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('clock_out_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(20), server_default='scheduled', nullable=False),
        sa.Column('actual_hours', sa.Numeric(6, 2), nullable=True),
        sa.Column('shift_type', sa.String(20), server_default='regular', nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), nullable=True),
        sa.Column('updated_by', UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            'clock_out_time IS NULL OR clock_in_time IS NULL OR clock_out_time >= clock_in_time',
            name='ck_shifts_clock_order',
        ),
    )
    op.create_index('ix_shifts_org_date', 'shifts', ['organization_id', 'shift_date'])
    op.create_index('ix_shifts_employee_date', 'shifts', ['employee_id', 'shift_date'])
    op.create_index('ix_shifts_schedule', 'shifts', ['schedule_id'])

    # 중복 근무 방지 트리거 — Overlapping shift guard
    op.execute(OVERLAP_FUNCTION_SQL)
    op.execute(OVERLAP_TRIGGER_SQL)

    # shift_trades — 작업자 간 시프트 교환 요청 (Peer-to-peer trade requests)
    op.create_table(
        'shift_trades',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', UUID(as_uuid=True), nullable=False),
        sa.Column('from_shift_id', UUID(as_uuid=True), sa.ForeignKey('shifts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('to_shift_id', UUID(as_uuid=True), sa.ForeignKey('shifts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('requesting_worker_id', UUID(as_uuid=True), sa.ForeignKey('workers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('responding_worker_id', UUID(as_uuid=True), sa.ForeignKey('workers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), server_default='pending', nullable=False),
        sa.Column('requested_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_by', UUID(as_uuid=True), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('manager_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_shift_trades_requester_status', 'shift_trades', ['requesting_worker_id', 'status'])
    op.create_index('ix_shift_trades_responder_status', 'shift_trades', ['responding_worker_id', 'status'])


def downgrade() -> None:
    op.drop_index('ix_shift_trades_responder_status', table_name='shift_trades')
    op.drop_index('ix_shift_trades_requester_status', table_name='shift_trades')
    op.drop_table('shift_trades')

    op.execute("DROP TRIGGER IF EXISTS trg_prevent_overlapping_shifts ON shifts")
    op.execute("DROP FUNCTION IF EXISTS prevent_overlapping_shifts()")
    op.drop_index('ix_shifts_schedule', table_name='shifts')
    op.drop_index('ix_shifts_employee_date', table_name='shifts')
    op.drop_index('ix_shifts_org_date', table_name='shifts')
    op.drop_table('shifts')

    op.drop_index('ix_schedules_org_dates', table_name='schedules')
    op.drop_table('schedules')
    op.drop_table('shift_template_stations')
    op.drop_index('ix_shift_templates_organization_id', table_name='shift_templates')
    op.drop_table('shift_templates')
    op.drop_table('station_role_requirements')
    op.drop_index('ix_stations_organization_id', table_name='stations')
    op.drop_table('stations')
    op.drop_index('ix_worker_availability_worker', table_name='worker_availability')
    op.drop_table('worker_availability')
    op.drop_index('ix_worker_roles_role', table_name='worker_roles')
    op.drop_table('worker_roles')
    op.drop_index('ix_roles_organization_id', table_name='roles')
    op.drop_table('roles')
    op.drop_index('ix_workers_organization_id', table_name='workers')
    op.drop_table('workers')
