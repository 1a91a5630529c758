"""Initial paywall schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create users, articles, subscriptions, purchases and webhook tracking."""

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('name', sa.String(255)),
        sa.Column('image', sa.String()),
        sa.Column('hashed_password', sa.String()),
        # Stripe customer, assigned on first checkout
        sa.Column('customer_id', sa.String()),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_customer_id', 'users', ['customer_id'], unique=True)

    op.create_table(
        'articles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('image', sa.String()),
        sa.Column('access_level', sa.String(20), server_default='Free', nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_articles_access_level', 'articles', ['access_level'])

    op.create_table(
        'subscriptions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'user_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('stripe_subscription_id', sa.String(), nullable=False),
        sa.Column('price_id', sa.String(), nullable=False),
        sa.Column('level', sa.String(20), nullable=False),
        sa.Column('status', sa.String(32), server_default='incomplete', nullable=False),
        sa.Column('current_period_end', sa.DateTime(timezone=True)),
        sa.Column('cancel_at_period_end', sa.Boolean(), server_default='false', nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_subscriptions_user_id', 'subscriptions', ['user_id'], unique=True)
    op.create_index(
        'ix_subscriptions_stripe_subscription_id',
        'subscriptions',
        ['stripe_subscription_id'],
        unique=True,
    )

    op.create_table(
        'purchases',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'user_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'article_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('articles.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('payment_intent_id', sa.String(), nullable=False),
        sa.Column('payment_status', sa.String(32), server_default='requires_payment_method', nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'article_id', name='uq_purchases_user_article'),
    )
    op.create_index('ix_purchases_user_id', 'purchases', ['user_id'])
    op.create_index('ix_purchases_article_id', 'purchases', ['article_id'])
    op.create_index(
        'ix_purchases_payment_intent_id',
        'purchases',
        ['payment_intent_id'],
        unique=True,
    )

    op.create_table(
        'processed_webhook_events',
        sa.Column('event_id', sa.String(255), primary_key=True),
        sa.Column('event_type', sa.String(100), nullable=False),
        sa.Column(
            'processed_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
    )
    # Index for cleanup queries (delete events older than X days)
    op.create_index(
        'ix_processed_webhook_events_processed_at',
        'processed_webhook_events',
        ['processed_at'],
    )


def downgrade() -> None:
    """Drop all paywall tables."""
    op.drop_index('ix_processed_webhook_events_processed_at')
    op.drop_table('processed_webhook_events')
    op.drop_table('purchases')
    op.drop_table('subscriptions')
    op.drop_table('articles')
    op.drop_table('users')
