"""Initial schema: tenants, users, catalog, plans, subscriptions, usage

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

UUID = postgresql.UUID(as_uuid=True)


def _tenant_fk():
    return sa.Column('tenant_id', UUID, sa.ForeignKey('tenants.id'), nullable=False, index=True)


def upgrade():
    op.create_table(
        'tenants',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('slug', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('business_type', sa.Enum('HAIR_BEAUTY', 'SPA_WELLNESS', 'OTHER', name='businesstype'), nullable=False),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('country', sa.String(2), nullable=True),
        sa.Column('timezone', sa.String(64), nullable=False, server_default='UTC'),
        sa.Column('stripe_customer_id', sa.String(255), nullable=True, index=True),
        sa.Column('pm_type', sa.String(50), nullable=True),
        sa.Column('pm_last_four', sa.String(4), nullable=True),
        sa.Column('settings', sa.JSON(), nullable=True),
        sa.Column('reservation_lead_time_hours', sa.Integer(), nullable=True),
        sa.Column('reservation_max_days_in_advance', sa.Integer(), nullable=True),
        sa.Column('reservation_slot_interval_minutes', sa.Integer(), nullable=True),
        sa.Column('status', sa.Enum('ACTIVE', 'SUSPENDED', name='tenantstatus'), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'users',
        sa.Column('id', UUID, primary_key=True),
        _tenant_fk(),
        sa.Column('email', sa.String(255), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('role', sa.Enum('OWNER', 'STAFF', 'ADMIN', name='userrole'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'staff_profiles',
        sa.Column('id', UUID, primary_key=True),
        _tenant_fk(),
        sa.Column('user_id', UUID, sa.ForeignKey('users.id'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('bio', sa.String(2000), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, index=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'services',
        sa.Column('id', UUID, primary_key=True),
        _tenant_fk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.String(2000), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, index=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'clients',
        sa.Column('id', UUID, primary_key=True),
        _tenant_fk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True, index=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('notes', sa.String(2000), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'appointments',
        sa.Column('id', UUID, primary_key=True),
        _tenant_fk(),
        sa.Column('client_id', UUID, sa.ForeignKey('clients.id'), nullable=True, index=True),
        sa.Column('staff_id', UUID, sa.ForeignKey('staff_profiles.id'), nullable=True, index=True),
        sa.Column('service_id', UUID, sa.ForeignKey('services.id'), nullable=True),
        sa.Column('starts_at', sa.DateTime(), nullable=False, index=True),
        sa.Column('ends_at', sa.DateTime(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('BOOKED', 'COMPLETED', 'CANCELED', 'NO_SHOW', name='appointmentstatus'),
            nullable=False,
            index=True,
        ),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'working_hours',
        sa.Column('id', UUID, primary_key=True),
        _tenant_fk(),
        sa.Column('staff_id', UUID, sa.ForeignKey('staff_profiles.id'), nullable=True, index=True),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('tenant_id', 'staff_id', 'day_of_week', name='uq_working_hours_tenant_staff_day'),
    )

    op.create_table(
        'plans',
        sa.Column('id', UUID, primary_key=True),
        sa.Column('slug', sa.String(50), nullable=False, unique=True, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.String(1000), nullable=True),
        sa.Column('monthly_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('yearly_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('stripe_monthly_price_id', sa.String(255), nullable=True),
        sa.Column('stripe_yearly_price_id', sa.String(255), nullable=True),
        sa.Column('features', sa.JSON(), nullable=True),
        sa.Column('limits', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, index=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, index=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'subscriptions',
        sa.Column('id', UUID, primary_key=True),
        _tenant_fk(),
        sa.Column('plan_id', UUID, sa.ForeignKey('plans.id'), nullable=False, index=True),
        sa.Column('type', sa.String(50), nullable=False, server_default='default'),
        sa.Column('stripe_id', sa.String(255), nullable=False, index=True),
        sa.Column(
            'stripe_status',
            sa.Enum(
                'ACTIVE', 'TRIALING', 'CANCELED', 'PAST_DUE', 'INCOMPLETE',
                'INCOMPLETE_EXPIRED', 'UNPAID', 'PAUSED',
                name='subscriptionstatus',
            ),
            nullable=False,
            index=True,
        ),
        sa.Column('stripe_price', sa.String(255), nullable=True),
        sa.Column('billing_cycle', sa.Enum('MONTHLY', 'YEARLY', name='billingcycle'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('trial_ends_at', sa.DateTime(), nullable=True),
        sa.Column('ends_at', sa.DateTime(), nullable=True, index=True),
        sa.Column('scheduled_plan_id', UUID, sa.ForeignKey('plans.id'), nullable=True),
        sa.Column('scheduled_change_at', sa.DateTime(), nullable=True, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'usage_records',
        sa.Column('id', UUID, primary_key=True),
        _tenant_fk(),
        sa.Column('period', sa.String(7), nullable=False, index=True),
        sa.Column('reservations_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reservations_limit', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('tenant_id', 'period', name='uq_usage_records_tenant_period'),
    )


def downgrade():
    op.drop_table('usage_records')
    op.drop_table('subscriptions')
    op.drop_table('plans')
    op.drop_table('working_hours')
    op.drop_table('appointments')
    op.drop_table('clients')
    op.drop_table('services')
    op.drop_table('staff_profiles')
    op.drop_table('users')
    op.drop_table('tenants')

    for enum_name in (
        'billingcycle', 'subscriptionstatus', 'appointmentstatus',
        'userrole', 'tenantstatus', 'businesstype',
    ):
        op.execute(f'DROP TYPE IF EXISTS {enum_name}')
