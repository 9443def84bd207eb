"""add_chat_sessions_and_message_parts

Revision ID: a1c4e7f20b93
Revises:
Create Date: 2026-10-19 12:00:00.000000

Chat sessions + wide message_parts table (one column family per part type).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = 'a1c4e7f20b93'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TOOL_PREFIXES = ('tool_searchuserdocument', 'tool_websitesearchtool')


def _tool_columns(prefix: str) -> list[sa.Column]:
    return [
        sa.Column(f'{prefix}_toolcallid', sa.String(64), nullable=True),
        sa.Column(f'{prefix}_state', sa.String(20), nullable=True),
        sa.Column(f'{prefix}_input', sa.JSON(), nullable=True),
        sa.Column(f'{prefix}_output', sa.JSON(), nullable=True),
        sa.Column(f'{prefix}_errortext', sa.Text(), nullable=True),
        sa.Column(f'{prefix}_providerexecuted', sa.Boolean(), nullable=True),
    ]


def upgrade() -> None:
    # --- chat_sessions ---
    op.create_table(
        'chat_sessions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('chat_title', sa.String(200), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_chat_sessions')),
    )
    op.create_index('ix_chat_sessions_user_created', 'chat_sessions', ['user_id', 'created_at'])

    # --- message_parts ---
    tool_columns = [col for prefix in TOOL_PREFIXES for col in _tool_columns(prefix)]
    op.create_table(
        'message_parts',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('chat_session_id', sa.String(36), nullable=False),
        sa.Column('message_id', sa.String(64), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('type', sa.String(64), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('message_seq', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        # text / reasoning
        sa.Column('text_text', sa.Text(), nullable=True),
        sa.Column('text_state', sa.String(20), nullable=True),
        sa.Column('reasoning_text', sa.Text(), nullable=True),
        sa.Column('reasoning_state', sa.String(20), nullable=True),
        # file
        sa.Column('file_mediatype', sa.String(200), nullable=True),
        sa.Column('file_filename', sa.String(500), nullable=True),
        sa.Column('file_url', sa.Text(), nullable=True),
        # sources
        sa.Column('source_url_id', sa.String(200), nullable=True),
        sa.Column('source_url_url', sa.Text(), nullable=True),
        sa.Column('source_url_title', sa.Text(), nullable=True),
        sa.Column('source_document_id', sa.String(200), nullable=True),
        sa.Column('source_document_mediatype', sa.String(200), nullable=True),
        sa.Column('source_document_title', sa.Text(), nullable=True),
        sa.Column('source_document_filename', sa.String(500), nullable=True),
        # tools
        *tool_columns,
        sa.Column('providermetadata', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(
            ['chat_session_id'], ['chat_sessions.id'],
            name=op.f('fk_message_parts_chat_session_id_chat_sessions'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_message_parts')),
    )
    op.create_index(
        'ix_message_parts_session_seq', 'message_parts',
        ['chat_session_id', 'message_seq', 'order'],
    )
    op.create_index('ix_message_parts_message', 'message_parts', ['message_id'])


def downgrade() -> None:
    op.drop_index('ix_message_parts_message', table_name='message_parts')
    op.drop_index('ix_message_parts_session_seq', table_name='message_parts')
    op.drop_table('message_parts')
    op.drop_index('ix_chat_sessions_user_created', table_name='chat_sessions')
    op.drop_table('chat_sessions')
