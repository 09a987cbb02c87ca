"""create_sharing_tables

Revision ID: 3b9f1c2d7e40
Revises:
Create Date: 2026-10-18 10:12:41.204117

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3b9f1c2d7e40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'folios',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('owner_id', sa.String(length=64), nullable=False),
        sa.Column('is_system', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_folios_owner_id'), 'folios', ['owner_id'], unique=False)

    op.create_table(
        'folders',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('folio_id', sa.String(length=64), nullable=False),
        sa.Column('parent_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['folio_id'], ['folios.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_id'], ['folders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_folders_folio_id'), 'folders', ['folio_id'], unique=False)

    op.create_table(
        'notes',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('content', sa.JSON(), nullable=True),
        sa.Column('folio_id', sa.String(length=64), nullable=False),
        sa.Column('folder_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['folio_id'], ['folios.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['folder_id'], ['folders.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('folio_id', 'folder_id', 'title', name='uq_notes_folio_folder_title'),
    )
    op.create_index(op.f('ix_notes_folio_id'), 'notes', ['folio_id'], unique=False)
    op.create_index(op.f('ix_notes_folder_id'), 'notes', ['folder_id'], unique=False)
    op.create_index(
        'uq_notes_folio_root_title',
        'notes',
        ['folio_id', 'title'],
        unique=True,
        postgresql_where=sa.text('folder_id IS NULL'),
        sqlite_where=sa.text('folder_id IS NULL'),
    )

    op.create_table(
        'published_pages',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('note_id', sa.String(length=64), nullable=False),
        sa.Column('slug', sa.String(length=128), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.Column('published_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('view_count', sa.Integer(), nullable=False),
        sa.Column('last_viewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['note_id'], ['notes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('note_id'),
    )
    op.create_index(op.f('ix_published_pages_slug'), 'published_pages', ['slug'], unique=True)

    share_permission = sa.Enum('read', 'edit', name='share_permission')
    share_status = sa.Enum('active', 'revoked', name='share_status')
    op.create_table(
        'page_shares',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('page_id', sa.String(length=64), nullable=False),
        sa.Column('invited_email', sa.String(length=320), nullable=False),
        sa.Column('invited_by', sa.String(length=64), nullable=False),
        sa.Column('permission', share_permission, nullable=False),
        sa.Column('status', share_status, nullable=False),
        sa.Column('access_token', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('access_count', sa.Integer(), nullable=False),
        sa.Column('last_accessed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['page_id'], ['published_pages.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['invited_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('access_token'),
    )
    op.create_index(op.f('ix_page_shares_page_id'), 'page_shares', ['page_id'], unique=False)
    op.create_index(op.f('ix_page_shares_invited_email'), 'page_shares', ['invited_email'], unique=False)
    op.create_index(op.f('ix_page_shares_status'), 'page_shares', ['status'], unique=False)
    op.create_index(op.f('ix_page_shares_expires_at'), 'page_shares', ['expires_at'], unique=False)

    op.create_table(
        'page_collaborators',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('page_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('share_id', sa.String(length=64), nullable=True),
        sa.Column('role', sa.Enum('viewer', 'editor', name='collaborator_role'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['page_id'], ['published_pages.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['share_id'], ['page_shares.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('page_id', 'user_id', name='uq_page_collaborators_page_user'),
    )
    op.create_index(op.f('ix_page_collaborators_page_id'), 'page_collaborators', ['page_id'], unique=False)
    op.create_index(op.f('ix_page_collaborators_user_id'), 'page_collaborators', ['user_id'], unique=False)
    op.create_index(op.f('ix_page_collaborators_share_id'), 'page_collaborators', ['share_id'], unique=False)


def downgrade() -> None:
    op.drop_table('page_collaborators')
    op.drop_table('page_shares')
    op.drop_table('published_pages')
    op.drop_table('notes')
    op.drop_table('folders')
    op.drop_table('folios')
    op.drop_table('users')
    sa.Enum(name='collaborator_role').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='share_status').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='share_permission').drop(op.get_bind(), checkfirst=True)
