"""Initial schema: branches, customers, machines, sales, installments, payments, audit logs

MULTI-BRANCH SCHEMA:
1. Creates 'branches' as the tenant root
2. Every other table carries branch_id (enrolled in the branch catalog)
3. Receipt numbers are unique per branch on payments
4. machine_sales.paid_cents is bounded by total_cents via check constraints

Revision ID: bp001_initial_branch_schema
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'bp001_initial_branch_schema'
down_revision = None
branch_labels = None
depends_on = None


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def upgrade():
    # ==========================================================================
    # STEP 1: Tenant root and master data
    # ==========================================================================
    op.create_table('branches',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        _created_at(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_branches_code', 'branches', ['code'], unique=True)
    op.create_index('ix_branches_is_active', 'branches', ['is_active'])

    op.create_table('customers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code')
    )
    op.create_index('ix_customers_branch_id', 'customers', ['branch_id'])

    # ==========================================================================
    # STEP 2: Inventory units and ownership records
    # ==========================================================================
    op.create_table('warehouse_machines',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=False),
        sa.Column('serial_number', sa.String(length=64), nullable=False),
        sa.Column('model', sa.String(length=128), nullable=True),
        sa.Column('manufacturer', sa.String(length=128), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='NEW'),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('serial_number')
    )
    op.create_index('ix_warehouse_machines_branch_id', 'warehouse_machines', ['branch_id'])
    op.create_index('ix_warehouse_machines_branch_status', 'warehouse_machines', ['branch_id', 'status'])

    op.create_table('pos_machines',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('serial_number', sa.String(length=64), nullable=False),
        sa.Column('model', sa.String(length=128), nullable=True),
        sa.Column('manufacturer', sa.String(length=128), nullable=True),
        sa.Column('is_main', sa.Boolean(), nullable=False, server_default='0'),
        _created_at(),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('serial_number')
    )
    op.create_index('ix_pos_machines_branch_id', 'pos_machines', ['branch_id'])
    op.create_index('ix_pos_machines_customer_id', 'pos_machines', ['customer_id'])

    # ==========================================================================
    # STEP 3: Sales, installments, payments
    # ==========================================================================
    op.create_table('machine_sales',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('serial_number', sa.String(length=64), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('paid_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='ONGOING'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('sale_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        sa.CheckConstraint('paid_cents >= 0', name='ck_machine_sales_paid_non_negative'),
        sa.CheckConstraint('paid_cents <= total_cents', name='ck_machine_sales_paid_le_total'),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_machine_sales_branch_id', 'machine_sales', ['branch_id'])
    op.create_index('ix_machine_sales_customer_id', 'machine_sales', ['customer_id'])
    op.create_index('ix_machine_sales_serial_number', 'machine_sales', ['serial_number'])
    op.create_index('ix_machine_sales_status', 'machine_sales', ['status'])
    op.create_index('ix_machine_sales_branch_status', 'machine_sales', ['branch_id', 'status'])

    op.create_table('installments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('is_paid', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('paid_cents', sa.Integer(), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('receipt_number', sa.String(length=64), nullable=True),
        sa.Column('payment_place', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['sale_id'], ['machine_sales.id']),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_installments_sale_id', 'installments', ['sale_id'])
    op.create_index('ix_installments_branch_id', 'installments', ['branch_id'])
    op.create_index('ix_installments_branch_paid_due', 'installments', ['branch_id', 'is_paid', 'due_date'])
    op.create_index('ix_installments_receipt', 'installments', ['branch_id', 'receipt_number'])

    op.create_table('payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=True),
        sa.Column('installment_id', sa.Integer(), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('receipt_number', sa.String(length=64), nullable=True),
        sa.Column('payment_place', sa.String(length=64), nullable=True),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['sale_id'], ['machine_sales.id']),
        sa.ForeignKeyConstraint(['installment_id'], ['installments.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('branch_id', 'receipt_number', name='uq_payments_branch_receipt')
    )
    op.create_index('ix_payments_branch_id', 'payments', ['branch_id'])
    op.create_index('ix_payments_customer_id', 'payments', ['customer_id'])
    op.create_index('ix_payments_sale_id', 'payments', ['sale_id'])
    op.create_index('ix_payments_branch_created', 'payments', ['branch_id', 'created_at'])

    # ==========================================================================
    # STEP 4: Append-only audit trail
    # ==========================================================================
    op.create_table('machine_movement_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=False),
        sa.Column('machine_id', sa.Integer(), nullable=True),
        sa.Column('serial_number', sa.String(length=64), nullable=False),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('performed_by', sa.String(length=128), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_machine_movement_logs_branch_id', 'machine_movement_logs', ['branch_id'])
    op.create_index('ix_machine_movement_logs_serial', 'machine_movement_logs', ['serial_number'])

    op.create_table('system_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=False),
        sa.Column('entity_type', sa.String(length=32), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('actor_id', sa.String(length=64), nullable=True),
        sa.Column('performed_by', sa.String(length=128), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_system_logs_branch_id', 'system_logs', ['branch_id'])
    op.create_index('ix_system_logs_entity', 'system_logs', ['entity_type', 'entity_id'])


def downgrade():
    op.drop_table('system_logs')
    op.drop_table('machine_movement_logs')
    op.drop_table('payments')
    op.drop_table('installments')
    op.drop_table('machine_sales')
    op.drop_table('pos_machines')
    op.drop_table('warehouse_machines')
    op.drop_table('customers')
    op.drop_table('branches')
