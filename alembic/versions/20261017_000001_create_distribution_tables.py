"""Create distribution tables.

Revision ID: 20261017_000001
Revises:
Create Date: 2026-10-17

Users and wallets, distributor tree, commission ledger, withdrawals and the
versioned commission configuration with its single current pointer.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261017_000001'
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.DECIMAL(precision=12, scale=2)
FEE = sa.DECIMAL(precision=10, scale=2)
RATE = sa.DECIMAL(precision=5, scale=4)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('now()')
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('now()')
        ),
    ]


def upgrade() -> None:
    """Create distribution tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('nickname', sa.String(length=64), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('referrer_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['referrer_id'], ['users.id'], ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('phone'),
    )
    op.create_index('ix_users_referrer_id', 'users', ['referrer_id'])

    op.create_table(
        'user_wallets',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('balance', MONEY, nullable=False, server_default='0'),
        sa.Column('frozen_balance', MONEY, nullable=False, server_default='0'),
        sa.Column('total_withdrawn', MONEY, nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
        sa.CheckConstraint(
            'balance >= 0', name='check_wallet_balance_non_negative'
        ),
        sa.CheckConstraint(
            'frozen_balance >= 0',
            name='check_wallet_frozen_balance_non_negative'
        ),
        sa.CheckConstraint(
            'total_withdrawn >= 0',
            name='check_wallet_total_withdrawn_non_negative'
        ),
    )

    op.create_table(
        'distributors',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column(
            'level',
            sa.SmallInteger(),
            nullable=False,
            server_default='1',
            comment='1 = direct, 2 = indirect'
        ),
        sa.Column('invite_code', sa.String(length=20), nullable=False),
        sa.Column(
            'status',
            sa.String(length=20),
            nullable=False,
            server_default='pending',
            comment='pending, approved, rejected'
        ),
        sa.Column('direct_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('team_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_commission', MONEY, nullable=False, server_default='0'),
        sa.Column('available_commission', MONEY, nullable=False, server_default='0'),
        sa.Column('frozen_commission', MONEY, nullable=False, server_default='0'),
        sa.Column('withdrawn_commission', MONEY, nullable=False, server_default='0'),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('reject_reason', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(
            ['parent_id'], ['distributors.id'], ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
        sa.UniqueConstraint('invite_code'),
        sa.CheckConstraint(
            'available_commission >= 0',
            name='check_distributor_available_non_negative'
        ),
        sa.CheckConstraint(
            'frozen_commission >= 0',
            name='check_distributor_frozen_non_negative'
        ),
        sa.CheckConstraint(
            'withdrawn_commission >= 0',
            name='check_distributor_withdrawn_non_negative'
        ),
        sa.CheckConstraint(
            'total_commission >= 0',
            name='check_distributor_total_non_negative'
        ),
        sa.CheckConstraint(
            'direct_count >= 0 AND team_count >= direct_count',
            name='check_distributor_counts'
        ),
        sa.CheckConstraint(
            'parent_id IS NULL OR parent_id <> id',
            name='check_distributor_not_own_parent'
        ),
    )
    op.create_index('ix_distributors_parent_id', 'distributors', ['parent_id'])
    op.create_index('idx_distributor_status', 'distributors', ['status'])

    op.create_table(
        'commissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('distributor_id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.BigInteger(), nullable=False),
        sa.Column('from_user_id', sa.Integer(), nullable=False),
        sa.Column(
            'type',
            sa.String(length=20),
            nullable=False,
            comment='direct, indirect'
        ),
        sa.Column('order_amount', MONEY, nullable=False),
        sa.Column('rate', RATE, nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column(
            'status',
            sa.String(length=20),
            nullable=False,
            server_default='pending',
            comment='pending, settled, cancelled'
        ),
        sa.Column('settled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('now()')
        ),
        sa.ForeignKeyConstraint(
            ['distributor_id'], ['distributors.id'], ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(['from_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            'amount >= 0', name='check_commission_amount_non_negative'
        ),
        sa.CheckConstraint(
            'rate >= 0 AND rate <= 1', name='check_commission_rate_range'
        ),
    )
    op.create_index(
        'ix_commissions_distributor_id', 'commissions', ['distributor_id']
    )
    op.create_index('idx_commission_status', 'commissions', ['status'])
    op.create_index('idx_commission_order', 'commissions', ['order_id'])

    op.create_table(
        'withdrawals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('withdrawal_no', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column(
            'type',
            sa.String(length=20),
            nullable=False,
            server_default='commission',
            comment='commission, balance'
        ),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('fee', FEE, nullable=False, server_default='0'),
        sa.Column('actual_amount', MONEY, nullable=False),
        sa.Column(
            'withdraw_to',
            sa.String(length=20),
            nullable=False,
            comment='wechat, alipay, bank'
        ),
        sa.Column(
            'account_info_encrypted',
            sa.Text(),
            nullable=False,
            server_default='',
            comment='Fernet-encrypted payout account details'
        ),
        sa.Column(
            'status',
            sa.String(length=20),
            nullable=False,
            server_default='pending',
            comment='pending, approved, rejected, processing, success'
        ),
        sa.Column('operator_id', sa.Integer(), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reject_reason', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('withdrawal_no'),
        sa.CheckConstraint(
            'amount > 0', name='check_withdrawal_amount_positive'
        ),
        sa.CheckConstraint(
            'fee >= 0', name='check_withdrawal_fee_non_negative'
        ),
        sa.CheckConstraint(
            'actual_amount = amount - fee',
            name='check_withdrawal_actual_amount'
        ),
    )
    op.create_index('ix_withdrawals_user_id', 'withdrawals', ['user_id'])
    op.create_index('idx_withdrawal_status', 'withdrawals', ['status'])

    op.create_table(
        'commission_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('direct_rate', RATE, nullable=False),
        sa.Column('indirect_rate', RATE, nullable=False),
        sa.Column('min_withdraw', MONEY, nullable=False),
        sa.Column('withdraw_fee', RATE, nullable=False),
        sa.Column('settle_delay', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('now()')
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            'direct_rate >= 0 AND direct_rate <= 1',
            name='check_setting_direct_rate_range'
        ),
        sa.CheckConstraint(
            'indirect_rate >= 0 AND indirect_rate <= 1',
            name='check_setting_indirect_rate_range'
        ),
        sa.CheckConstraint(
            'direct_rate + indirect_rate <= 0.5',
            name='check_setting_total_rate'
        ),
        sa.CheckConstraint(
            'min_withdraw >= 0', name='check_setting_min_withdraw_non_negative'
        ),
        sa.CheckConstraint(
            'withdraw_fee >= 0 AND withdraw_fee <= 1',
            name='check_setting_withdraw_fee_range'
        ),
        sa.CheckConstraint(
            'settle_delay >= 0', name='check_setting_settle_delay_non_negative'
        ),
    )

    op.create_table(
        'commission_setting_current',
        sa.Column('id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('setting_id', sa.Integer(), nullable=False),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text('now()')
        ),
        sa.ForeignKeyConstraint(['setting_id'], ['commission_settings.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('id = 1', name='check_setting_current_singleton'),
    )


def downgrade() -> None:
    """Drop distribution tables."""
    op.drop_table('commission_setting_current')
    op.drop_table('commission_settings')
    op.drop_index('idx_withdrawal_status', table_name='withdrawals')
    op.drop_index('ix_withdrawals_user_id', table_name='withdrawals')
    op.drop_table('withdrawals')
    op.drop_index('idx_commission_order', table_name='commissions')
    op.drop_index('idx_commission_status', table_name='commissions')
    op.drop_index('ix_commissions_distributor_id', table_name='commissions')
    op.drop_table('commissions')
    op.drop_index('idx_distributor_status', table_name='distributors')
    op.drop_index('ix_distributors_parent_id', table_name='distributors')
    op.drop_table('distributors')
    op.drop_table('user_wallets')
    op.drop_index('ix_users_referrer_id', table_name='users')
    op.drop_table('users')
