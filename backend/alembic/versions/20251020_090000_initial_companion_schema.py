"""Initial schema - users, workspaces, ai_models, chats, messages, images, app_users

Revision ID: 20251020_090000
Revises: 
Create Date: 2025-10-20 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20251020_090000'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _updated_at_trigger(table: str) -> None:
    op.execute(f"""
        CREATE TRIGGER update_{table}_updated_at
        BEFORE UPDATE ON {table}
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)


def upgrade() -> None:
    # Create the trigger function first
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = CURRENT_TIMESTAMP;
            RETURN NEW;
        END;
        $$ language 'plpgsql';
    """)

    # Profile rows keyed by the identity provider's user id
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('timezone', sa.String(64), nullable=False, server_default='UTC'),
        sa.Column('locale', sa.String(16), nullable=False, server_default='en'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_users_email', 'users', ['email'])
    _updated_at_trigger('users')

    op.create_table(
        'workspaces',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('gender', sa.String(50), nullable=True),
        sa.Column('interests', sa.JSON(), nullable=True),
        sa.Column('goals', sa.JSON(), nullable=True),
        sa.Column('personality_type', sa.String(100), nullable=True),
        sa.Column('preferred_communication', sa.JSON(), nullable=True),
        sa.Column('privacy_level', sa.String(20), nullable=True),
        sa.Column('memory_enabled', sa.Boolean(), nullable=True),
        sa.Column('current_step', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('onboarding_complete', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_workspaces_user_id', 'workspaces', ['user_id'])
    _updated_at_trigger('workspaces')

    # workspace_id NULL marks a global default persona
    op.create_table(
        'ai_models',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('workspace_id', sa.String(36), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('role', sa.String(255), nullable=False),
        sa.Column('personality', sa.String(500), nullable=False),
        sa.Column('predefined', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('topics', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('system_prompt', sa.Text(), nullable=False, server_default=''),
        sa.Column('custom_triggers', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('config', sa.JSON(), nullable=False, server_default='{}'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_ai_models_workspace_id', 'ai_models', ['workspace_id'])
    _updated_at_trigger('ai_models')

    op.create_table(
        'chats',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('workspace_id', sa.String(36), nullable=False),
        sa.Column('ai_model_id', sa.String(36), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['ai_model_id'], ['ai_models.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_chats_user_id', 'chats', ['user_id'])
    op.create_index('ix_chats_workspace_id', 'chats', ['workspace_id'])
    op.create_index('ix_chats_ai_model_id', 'chats', ['ai_model_id'])
    _updated_at_trigger('chats')

    # Messages are append-only: no updated_at
    op.create_table(
        'messages',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('chat_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('workspace_id', sa.String(36), nullable=False),
        sa.Column('ai_model_id', sa.String(36), nullable=True),
        sa.Column('prompt', sa.Text(), nullable=True),
        sa.Column('response', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['chat_id'], ['chats.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['ai_model_id'], ['ai_models.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_messages_chat_id', 'messages', ['chat_id'])
    op.create_index('ix_messages_created_at', 'messages', ['created_at'])

    op.create_table(
        'images',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('workspace_id', sa.String(36), nullable=False),
        sa.Column('chat_id', sa.String(36), nullable=True),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('storage_path', sa.Text(), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['chat_id'], ['chats.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_images_user_id', 'images', ['user_id'])
    op.create_index('ix_images_workspace_id', 'images', ['workspace_id'])

    # Billing-side users, matched by email after checkout
    op.create_table(
        'app_users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )


def downgrade() -> None:
    op.drop_table('app_users')

    op.drop_index('ix_images_workspace_id', table_name='images')
    op.drop_index('ix_images_user_id', table_name='images')
    op.drop_table('images')

    op.drop_index('ix_messages_created_at', table_name='messages')
    op.drop_index('ix_messages_chat_id', table_name='messages')
    op.drop_table('messages')

    for table in ('chats', 'ai_models', 'workspaces', 'users'):
        op.execute(f"DROP TRIGGER IF EXISTS update_{table}_updated_at ON {table}")

    op.drop_index('ix_chats_ai_model_id', table_name='chats')
    op.drop_index('ix_chats_workspace_id', table_name='chats')
    op.drop_index('ix_chats_user_id', table_name='chats')
    op.drop_table('chats')

    op.drop_index('ix_ai_models_workspace_id', table_name='ai_models')
    op.drop_table('ai_models')

    op.drop_index('ix_workspaces_user_id', table_name='workspaces')
    op.drop_table('workspaces')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")
