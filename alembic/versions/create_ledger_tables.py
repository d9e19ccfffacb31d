"""create ledger tables

Revision ID: 3c1f9a7d2b40
Revises:
Create Date: 2026-10-19 09:12:40

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f9a7d2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


charge_type = sa.Enum('COMMON_EXPENSE', 'EXTRAORDINARY', 'FINE', 'CREDIT', 'OTHER', name='charge_type')
charge_status = sa.Enum('PENDING', 'PARTIAL', 'PAID', name='charge_status')
payment_method = sa.Enum('TRANSFER', 'CASH', 'CARD', 'ONLINE', name='payment_method')
payment_status = sa.Enum('SUBMITTED', 'APPROVED', 'REJECTED', name='payment_status')
finance_action = sa.Enum(
    'CHARGE_CREATED', 'CHARGE_UPDATED', 'CHARGE_CANCELED', 'CHARGE_STATUS_CHANGED',
    'PAYMENT_SUBMITTED', 'PAYMENT_APPROVED', 'PAYMENT_REJECTED',
    'ALLOCATION_CREATED', 'ALLOCATION_DELETED',
    name='finance_action',
)


def upgrade() -> None:
    op.create_table(
        'tenants',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'buildings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_buildings_tenant_id', 'buildings', ['tenant_id'])

    op.create_table(
        'units',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('building_id', sa.Uuid(), nullable=False),
        sa.Column('label', sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(['building_id'], ['buildings.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_units_building_id', 'units', ['building_id'])

    op.create_table(
        'unit_occupants',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('unit_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_unit_occupants_user_id', 'unit_occupants', ['user_id'])

    op.create_table(
        'charges',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('building_id', sa.Uuid(), nullable=False),
        sa.Column('unit_id', sa.Uuid(), nullable=False),
        sa.Column('period', sa.String(length=7), nullable=False),
        sa.Column('type', charge_type, nullable=False),
        sa.Column('concept', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', charge_status, nullable=False),
        sa.Column('canceled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by_membership_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.ForeignKeyConstraint(['building_id'], ['buildings.id']),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_charges_tenant_id', 'charges', ['tenant_id'])
    op.create_index('ix_charges_building_period', 'charges', ['building_id', 'period'])
    op.create_index('ix_charges_unit_id', 'charges', ['unit_id'])

    # 취소되지 않은 청구만 (호실, 기간, 항목) 유일
    op.create_index(
        'uq_charges_unit_period_concept_active',
        'charges',
        ['tenant_id', 'building_id', 'unit_id', 'period', 'concept'],
        unique=True,
        postgresql_where=sa.text('canceled_at IS NULL'),
    )

    op.create_table(
        'payments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('building_id', sa.Uuid(), nullable=False),
        sa.Column('unit_id', sa.Uuid(), nullable=True),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('method', payment_method, nullable=False),
        sa.Column('status', payment_status, nullable=False),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('proof_file_id', sa.String(length=64), nullable=True),
        sa.Column('created_by_user_id', sa.Uuid(), nullable=False),
        sa.Column('reviewed_by_membership_id', sa.Uuid(), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.ForeignKeyConstraint(['building_id'], ['buildings.id']),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payments_tenant_id', 'payments', ['tenant_id'])
    op.create_index('ix_payments_building_status', 'payments', ['building_id', 'status'])
    op.create_index('ix_payments_unit_id', 'payments', ['unit_id'])
    op.create_index('ix_payments_created_by_user_id', 'payments', ['created_by_user_id'])

    op.create_table(
        'payment_allocations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('payment_id', sa.Uuid(), nullable=False),
        sa.Column('charge_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.ForeignKeyConstraint(['payment_id'], ['payments.id']),
        sa.ForeignKeyConstraint(['charge_id'], ['charges.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('payment_id', 'charge_id', name='uq_payment_allocations_payment_charge'),
    )
    op.create_index('ix_payment_allocations_tenant_id', 'payment_allocations', ['tenant_id'])
    op.create_index('ix_payment_allocations_charge_id', 'payment_allocations', ['charge_id'])

    op.create_table(
        'finance_audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('actor_user_id', sa.Uuid(), nullable=True),
        sa.Column('actor_membership_id', sa.Uuid(), nullable=True),
        sa.Column('action', finance_action, nullable=False),
        sa.Column('entity_type', sa.String(length=20), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('meta', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_finance_audit_logs_tenant_id', 'finance_audit_logs', ['tenant_id'])
    op.create_index('ix_finance_audit_logs_entity', 'finance_audit_logs', ['entity_type', 'entity_id'])


def downgrade() -> None:
    op.drop_index('ix_finance_audit_logs_entity', table_name='finance_audit_logs')
    op.drop_index('ix_finance_audit_logs_tenant_id', table_name='finance_audit_logs')
    op.drop_table('finance_audit_logs')

    op.drop_index('ix_payment_allocations_charge_id', table_name='payment_allocations')
    op.drop_index('ix_payment_allocations_tenant_id', table_name='payment_allocations')
    op.drop_table('payment_allocations')

    op.drop_index('ix_payments_created_by_user_id', table_name='payments')
    op.drop_index('ix_payments_unit_id', table_name='payments')
    op.drop_index('ix_payments_building_status', table_name='payments')
    op.drop_index('ix_payments_tenant_id', table_name='payments')
    op.drop_table('payments')

    op.drop_index('uq_charges_unit_period_concept_active', table_name='charges')
    op.drop_index('ix_charges_unit_id', table_name='charges')
    op.drop_index('ix_charges_building_period', table_name='charges')
    op.drop_index('ix_charges_tenant_id', table_name='charges')
    op.drop_table('charges')

    op.drop_index('ix_unit_occupants_user_id', table_name='unit_occupants')
    op.drop_table('unit_occupants')
    op.drop_index('ix_units_building_id', table_name='units')
    op.drop_table('units')
    op.drop_index('ix_buildings_tenant_id', table_name='buildings')
    op.drop_table('buildings')
    op.drop_table('tenants')

    for enum in (finance_action, payment_status, payment_method, charge_status, charge_type):
        enum.drop(op.get_bind(), checkfirst=True)
