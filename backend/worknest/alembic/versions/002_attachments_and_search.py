"""Attachments and ticket search index

Revision ID: 002_attachments_and_search
Revises: 001_initial_schema
Create Date: 2026-10-05

Adds:
- attachments table (metadata only, files live in UPLOAD_DIR)
- ticket_search_index table holding one token document per ticket
- backfill of the search index for tickets created before this revision
"""

from alembic import op
import sqlalchemy as sa

from worknest.core.search import build_document

# revision identifiers, used by Alembic.
revision = '002_attachments_and_search'
down_revision = '001_initial_schema'
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ==========================================================================
    # Attachments
    # ==========================================================================
    op.create_table(
        'attachments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('ticket_id', sa.Uuid(), nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.String(length=255), nullable=False),
        sa.Column('storage_path', sa.String(length=1024), nullable=False),
        sa.Column('uploaded_by', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['ticket_id'], ['tickets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['uploaded_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_attachments_ticket_id', 'attachments', ['ticket_id'])

    # ==========================================================================
    # Search Index
    # ==========================================================================
    search_index = op.create_table(
        'ticket_search_index',
        sa.Column('ticket_id', sa.Uuid(), nullable=False),
        sa.Column('document', sa.Text(), nullable=False, server_default=''),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['ticket_id'], ['tickets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('ticket_id'),
    )

    # ==========================================================================
    # Backfill
    # ==========================================================================
    tickets = sa.table(
        'tickets',
        sa.column('id', sa.Uuid()),
        sa.column('title', sa.String()),
        sa.column('description', sa.Text()),
        sa.column('updated_at', sa.DateTime(timezone=True)),
    )
    rows = op.get_bind().execute(
        sa.select(tickets.c.id, tickets.c.title, tickets.c.description, tickets.c.updated_at)
    ).all()
    if rows:
        op.bulk_insert(
            search_index,
            [
                {
                    'ticket_id': row.id,
                    'document': build_document(row.title, row.description),
                    'updated_at': row.updated_at,
                }
                for row in rows
            ],
        )


def downgrade() -> None:
    op.drop_table('ticket_search_index')
    op.drop_index('ix_attachments_ticket_id', table_name='attachments')
    op.drop_table('attachments')
