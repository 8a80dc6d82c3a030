"""create trading and negotiation tables

Revision ID: 1c2d3e4f5a6b
Revises:
Create Date: 2026-10-17 00:01:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '1c2d3e4f5a6b'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('full_name', sa.String(200), nullable=True),
        sa.Column('open_to_trades', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('negotiation_aggressiveness', sa.String(20), nullable=False, server_default='balanced'),
        sa.Column('created_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )

    op.create_table(
        'items',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('seller_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('condition', sa.String(50), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('minimum_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_items_seller_id', 'items', ['seller_id'])
    op.create_index('ix_items_status', 'items', ['status'])

    op.create_table(
        'trade_offers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('target_item_id', sa.String(36), sa.ForeignKey('items.id'), nullable=False),
        sa.Column('proposer_id', sa.String(36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('target_owner_id', sa.String(36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('cash_adjustment', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('message', sa.Text, nullable=True),
        sa.Column('total_offered_value', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.TIMESTAMP, nullable=False),
        sa.Column('responded_at', sa.TIMESTAMP, nullable=True),
    )
    op.create_index('ix_trade_offers_target_item_id', 'trade_offers', ['target_item_id'])
    op.create_index('ix_trade_offers_proposer_id', 'trade_offers', ['proposer_id'])
    op.create_index('ix_trade_offers_target_owner_id', 'trade_offers', ['target_owner_id'])
    op.create_index('ix_trade_offers_status', 'trade_offers', ['status'])
    op.create_index('ix_trade_offers_expires_at', 'trade_offers', ['expires_at'])

    op.create_table(
        'trade_items',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('trade_offer_id', sa.String(36), sa.ForeignKey('trade_offers.id'), nullable=False),
        sa.Column('item_id', sa.String(36), sa.ForeignKey('items.id'), nullable=False),
        sa.Column('position', sa.Integer, nullable=False, server_default='0'),
    )
    op.create_index('ix_trade_items_trade_offer_id', 'trade_items', ['trade_offer_id'])
    op.create_index('ix_trade_items_item_id', 'trade_items', ['item_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('from_user_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('to_user_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('trade_offer_id', sa.String(36), sa.ForeignKey('trade_offers.id', ondelete='CASCADE'), nullable=True),
        sa.Column('notification_type', sa.String(50), nullable=False),
        sa.Column('content', sa.JSON, nullable=False),
        sa.Column('read_at', sa.TIMESTAMP, nullable=True),
        sa.Column('created_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_notifications_to_user_id', 'notifications', ['to_user_id'])
    op.create_index('ix_notifications_trade_offer_id', 'notifications', ['trade_offer_id'])
    op.create_index('ix_notifications_read_at', 'notifications', ['read_at'])

    op.create_table(
        'agent_conversations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('item_id', sa.String(36), sa.ForeignKey('items.id'), nullable=False),
        sa.Column('buyer_id', sa.String(36), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('current_offer', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_agent_conversations_item_id', 'agent_conversations', ['item_id'])
    op.create_index('ix_agent_conversations_buyer_id', 'agent_conversations', ['buyer_id'])

    op.create_table(
        'agent_messages',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('conversation_id', sa.String(36), sa.ForeignKey('agent_conversations.id'), nullable=False),
        sa.Column('sequence', sa.Integer, nullable=False, server_default='0'),
        sa.Column('sender', sa.String(10), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('message_type', sa.String(20), nullable=False, server_default='text'),
        sa.Column('offer_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('counter_offer_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('expires_at', sa.TIMESTAMP, nullable=True),
        sa.Column('created_at', sa.TIMESTAMP, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_agent_messages_conversation_id', 'agent_messages', ['conversation_id'])

    print("✅ Created trading tables")
    print("   - profiles, items")
    print("   - trade_offers, trade_items, notifications")
    print("   - agent_conversations, agent_messages")


def downgrade() -> None:
    op.drop_index('ix_agent_messages_conversation_id', 'agent_messages')
    op.drop_table('agent_messages')

    op.drop_index('ix_agent_conversations_buyer_id', 'agent_conversations')
    op.drop_index('ix_agent_conversations_item_id', 'agent_conversations')
    op.drop_table('agent_conversations')

    op.drop_index('ix_notifications_read_at', 'notifications')
    op.drop_index('ix_notifications_trade_offer_id', 'notifications')
    op.drop_index('ix_notifications_to_user_id', 'notifications')
    op.drop_table('notifications')

    op.drop_index('ix_trade_items_item_id', 'trade_items')
    op.drop_index('ix_trade_items_trade_offer_id', 'trade_items')
    op.drop_table('trade_items')

    op.drop_index('ix_trade_offers_expires_at', 'trade_offers')
    op.drop_index('ix_trade_offers_status', 'trade_offers')
    op.drop_index('ix_trade_offers_target_owner_id', 'trade_offers')
    op.drop_index('ix_trade_offers_proposer_id', 'trade_offers')
    op.drop_index('ix_trade_offers_target_item_id', 'trade_offers')
    op.drop_table('trade_offers')

    op.drop_index('ix_items_status', 'items')
    op.drop_index('ix_items_seller_id', 'items')
    op.drop_table('items')

    op.drop_table('profiles')

    print("✅ Dropped trading tables")
