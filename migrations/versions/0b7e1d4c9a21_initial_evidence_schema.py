"""initial evidence schema

Revision ID: 0b7e1d4c9a21
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0b7e1d4c9a21'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MEDIA_KIND_VALUES = ('TEXT', 'PDF', 'IMAGE', 'AUDIO', 'VIDEO')

AUDIT_EVENT_VALUES = (
    'CASE_CREATED', 'DOCUMENT_INGESTED',
    'DUPLICATE_SKIPPED_EXACT', 'DUPLICATE_SKIPPED_SEMANTIC',
    'INGESTION_FAILED', 'DOCUMENT_DELETED', 'EVENTS_COMMITTED',
)


def upgrade() -> None:
    op.create_table(
        'cases',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        'documents',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('case_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('cases.id'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('sequence_number', sa.Integer(), nullable=False),
        sa.Column('bates_number', sa.String(), nullable=False),
        sa.Column('media_kind', postgresql.ENUM(*MEDIA_KIND_VALUES, name='mediakind'), nullable=True),
        sa.Column('mime_type', sa.String(), nullable=True),
        sa.Column('original_filename', sa.String(), nullable=True),
        sa.Column('document_date', sa.String(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('digest', sa.String(length=64), nullable=False),
        sa.Column('reliability_score', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('added_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('case_id', 'sequence_number', name='uq_documents_case_sequence'),
    )
    op.create_index('ix_documents_case_id', 'documents', ['case_id'])
    op.create_index('ix_documents_digest', 'documents', ['digest'])

    # Content half of the split store, keyed by document id
    op.create_table(
        'document_blobs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('text', sa.Text(), nullable=True),
        sa.Column('media_payload', sa.LargeBinary(), nullable=True),
    )

    op.create_table(
        'timeline_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('case_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('cases.id'), nullable=False),
        sa.Column('date', sa.String(), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('actor', sa.String(), nullable=True),
        sa.Column('cause', sa.Text(), nullable=False),
        sa.Column('effect', sa.Text(), nullable=False),
        sa.Column('claim', sa.Text(), nullable=False),
        sa.Column('relief', sa.Text(), nullable=False),
        sa.Column('legal_significance', sa.Text(), nullable=True),
        sa.Column('citations', sa.JSON(), nullable=False),
        sa.Column('source_document_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('source_quote', sa.Text(), nullable=True),
        sa.Column('needs_clarification', sa.Boolean(), nullable=False),
        sa.Column('clarification_question', sa.Text(), nullable=True),
        sa.Column('committed', sa.Boolean(), nullable=False),
    )
    op.create_index('ix_timeline_events_case_id', 'timeline_events', ['case_id'])
    op.create_index('ix_timeline_events_source_document_id', 'timeline_events', ['source_document_id'])

    op.create_table(
        'audit_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('case_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('cases.id'), nullable=False),
        sa.Column('event_type', postgresql.ENUM(*AUDIT_EVENT_VALUES, name='auditeventtype'), nullable=False),
        sa.Column('document_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('filename', sa.String(), nullable=True),
        sa.Column('detail', sa.JSON(), nullable=True),
    )
    op.create_index('ix_audit_events_case_id', 'audit_events', ['case_id'])


def downgrade() -> None:
    op.drop_index('ix_audit_events_case_id', table_name='audit_events')
    op.drop_table('audit_events')
    op.drop_index('ix_timeline_events_source_document_id', table_name='timeline_events')
    op.drop_index('ix_timeline_events_case_id', table_name='timeline_events')
    op.drop_table('timeline_events')
    op.drop_table('document_blobs')
    op.drop_index('ix_documents_digest', table_name='documents')
    op.drop_index('ix_documents_case_id', table_name='documents')
    op.drop_table('documents')
    op.drop_table('cases')
    op.execute("DROP TYPE IF EXISTS auditeventtype")
    op.execute("DROP TYPE IF EXISTS mediakind")
