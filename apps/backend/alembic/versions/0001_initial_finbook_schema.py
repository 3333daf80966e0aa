"""
Initial FinBook schema: users, profiles, entries, payment_reminders

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
    )

    # On SQLite these enums are CHECK-constrained VARCHARs
    plan = sa.Enum('Free', 'Pro', 'Enterprise', name='plan')
    billing_cycle = sa.Enum('Monthly', 'Yearly', name='billing_cycle')
    currency = sa.Enum('USD', 'INR', 'GBP', 'KWD', 'SAR', 'CNY', name='currency')
    payment_mode = sa.Enum('Cash', 'Bank Transfer', 'Credit Card', 'UPI', 'Check', name='payment_mode')
    reminder_type = sa.Enum('weekly_report', 'monthly_report', 'auto_reminder', name='reminder_type')

    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('name', sa.String(length=100), nullable=True),
        sa.Column('avatar', sa.String(length=500), nullable=True),
        sa.Column('plan', plan, nullable=False, server_default='Free'),
        sa.Column('billing_cycle', billing_cycle, nullable=False, server_default='Monthly'),
        sa.Column('plan_started_at', sa.DateTime(), nullable=True),
        sa.Column('currency', currency, nullable=False, server_default='USD'),
        sa.Column('receiving_accounts', sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column('payment_methods', sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
    )

    op.create_table(
        'entries',
        sa.Column('id', sa.String(length=32), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('payment_mode', payment_mode, nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('client_email', sa.String(length=320), nullable=True),
        sa.Column('last_manual_reminder_sent', sa.DateTime(), nullable=True),
        sa.Column('last_reminder_sent_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.CheckConstraint('amount > 0', name='ck_entry_amount_positive'),
        sa.CheckConstraint("type IN ('income', 'expense')", name='ck_entry_type'),
        sa.CheckConstraint("status IN ('pending', 'completed')", name='ck_entry_status'),
    )
    op.create_index('ix_entries_user_date', 'entries', ['user_id', 'date'])
    op.create_index('ix_entries_user_created', 'entries', ['user_id', 'created_at'])

    op.create_table(
        'payment_reminders',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', reminder_type, nullable=False),
        sa.Column('period_key', sa.String(length=64), nullable=False),
        sa.Column('entry_id', sa.String(length=32), sa.ForeignKey('entries.id', ondelete='SET NULL'), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.UniqueConstraint('user_id', 'type', 'period_key', name='uq_reminder_period'),
    )


def downgrade() -> None:
    op.drop_table('payment_reminders')
    op.drop_index('ix_entries_user_created', table_name='entries')
    op.drop_index('ix_entries_user_date', table_name='entries')
    op.drop_table('entries')
    op.drop_table('profiles')
    op.drop_table('users')
    bind = op.get_bind()
    for name in ('reminder_type', 'payment_mode', 'currency', 'billing_cycle', 'plan'):
        sa.Enum(name=name).drop(bind, checkfirst=True)
