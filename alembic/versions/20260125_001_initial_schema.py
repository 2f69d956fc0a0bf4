"""Create saved_audits and audit_history tables.

Revision ID: 001
Revises:
Create Date: 2026-01-25

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create saved_audits table
    op.create_table(
        'saved_audits',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('domain', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False, server_default='other'),
        sa.Column('site_title', sa.Text(), nullable=True),
        sa.Column('site_description', sa.Text(), nullable=True),
        sa.Column('favicon_url', sa.String(length=2048), nullable=True),
        sa.Column('domain_rating', sa.Integer(), nullable=True),
        sa.Column('organic_traffic', sa.BigInteger(), nullable=True),
        sa.Column('organic_keywords', sa.BigInteger(), nullable=True),
        sa.Column('backlinks', sa.BigInteger(), nullable=True),
        sa.Column('referring_domains', sa.BigInteger(), nullable=True),
        sa.Column('traffic_value', sa.BigInteger(), nullable=True),
        sa.Column('rank_score', sa.BigInteger(), nullable=True),
        sa.Column('submitter_email', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )
    op.create_index('ix_saved_audits_domain', 'saved_audits', ['domain'], unique=False)
    op.create_index('ix_saved_audits_category', 'saved_audits', ['category'], unique=False)
    op.create_index('ix_saved_audits_updated_at', 'saved_audits', ['updated_at'], unique=False)

    # Create audit_history table (append-only)
    op.create_table(
        'audit_history',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('audit_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('domain', sa.String(length=255), nullable=False),
        sa.Column('domain_rating', sa.Integer(), nullable=True),
        sa.Column('organic_traffic', sa.BigInteger(), nullable=True),
        sa.Column('organic_keywords', sa.BigInteger(), nullable=True),
        sa.Column('backlinks', sa.BigInteger(), nullable=True),
        sa.Column('referring_domains', sa.BigInteger(), nullable=True),
        sa.Column('traffic_value', sa.BigInteger(), nullable=True),
        sa.Column('rank_score', sa.BigInteger(), nullable=True),
        sa.Column('snapshot_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('source', sa.String(length=20), nullable=False, server_default='auto'),
        sa.ForeignKeyConstraint(['audit_id'], ['saved_audits.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_audit_history_audit_id_snapshot_at',
        'audit_history',
        ['audit_id', 'snapshot_at'],
        unique=False,
    )
    op.create_index('ix_audit_history_domain', 'audit_history', ['domain'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_audit_history_domain', table_name='audit_history')
    op.drop_index('ix_audit_history_audit_id_snapshot_at', table_name='audit_history')
    op.drop_table('audit_history')
    op.drop_index('ix_saved_audits_updated_at', table_name='saved_audits')
    op.drop_index('ix_saved_audits_category', table_name='saved_audits')
    op.drop_index('ix_saved_audits_domain', table_name='saved_audits')
    op.drop_table('saved_audits')
