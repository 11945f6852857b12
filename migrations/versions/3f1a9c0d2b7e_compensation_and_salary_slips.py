"""employees, employee_compensation and salary_slips

Revision ID: 3f1a9c0d2b7e
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c0d2b7e'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY_COLUMNS = (
    'basic_salary', 'hra', 'special_allowance', 'transport_allowance', 'medical_allowance',
    'performance_bonus', 'other_allowances', 'overtime_hours', 'overtime_rate', 'overtime_amount',
    'gross_earnings',
    'pf_employee', 'esi_employee', 'professional_tax', 'income_tax', 'loan_deduction',
    'advance_deduction', 'late_deduction', 'other_deductions', 'total_deductions',
    'net_salary', 'pf_employer', 'esi_employer',
)


def upgrade() -> None:
    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=32), nullable=False, unique=True),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('first_name', sa.String(length=80), nullable=False),
        sa.Column('last_name', sa.String(length=80), nullable=True),
        sa.Column('department', sa.String(length=120), nullable=True),
        sa.Column('position', sa.String(length=120), nullable=True),
        sa.Column('doj', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'employee_compensation',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('ctc', sa.Numeric(14, 2), nullable=False),
        sa.Column('effective_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_employee_compensation_employee_id', 'employee_compensation', ['employee_id'])

    op.create_table(
        'salary_slips',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('compensation_id', sa.Integer(),
                  sa.ForeignKey('employee_compensation.id', ondelete='SET NULL'), nullable=True),
        sa.Column('employee_code', sa.String(length=32), nullable=False),
        sa.Column('employee_name', sa.String(length=200), nullable=False),
        sa.Column('employee_email', sa.String(length=255), nullable=False),
        sa.Column('department', sa.String(length=120), nullable=True),
        sa.Column('position', sa.String(length=120), nullable=True),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('pay_period_start', sa.Date(), nullable=False),
        sa.Column('pay_period_end', sa.DateTime(), nullable=False),
        sa.Column('working_days', sa.Integer(), nullable=False, server_default='22'),
        sa.Column('present_days', sa.Integer(), nullable=False, server_default='22'),
        *[sa.Column(name, sa.Numeric(14, 2), nullable=False, server_default='0') for name in MONEY_COLUMNS],
        sa.Column('status', sa.Enum('processed', 'paid', name='salary_slip_status_enum'),
                  nullable=False, server_default='processed'),
        sa.Column('generated_date', sa.DateTime(), nullable=False),
        sa.Column('paid_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('employee_id', 'year', 'month', name='uq_salary_slip_employee_period'),
    )
    op.create_index('ix_salary_slips_employee_id', 'salary_slips', ['employee_id'])
    op.create_index('ix_salary_slip_period', 'salary_slips', ['year', 'month'])


def downgrade() -> None:
    op.drop_index('ix_salary_slip_period', table_name='salary_slips')
    op.drop_index('ix_salary_slips_employee_id', table_name='salary_slips')
    op.drop_table('salary_slips')
    sa.Enum(name='salary_slip_status_enum').drop(op.get_bind(), checkfirst=True)
    op.drop_index('ix_employee_compensation_employee_id', table_name='employee_compensation')
    op.drop_table('employee_compensation')
    op.drop_table('employees')
