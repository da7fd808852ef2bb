"""create notes table"""

# revision identifiers, used by Alembic.
revision = '20230402142655'
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    op.create_table(
        'notes',
        sa.Column('author', sa.String(length=32), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('iv', sa.CHAR(length=24), nullable=False),
        sa.Column('content', sa.String(length=102400), nullable=False),
        sa.PrimaryKeyConstraint('author', 'date', name='notes_pkey'),
        # length() ignores CHAR padding, so a short iv fails here
        sa.CheckConstraint('length(author) <= 32', name='ck_notes_author_length'),
        sa.CheckConstraint('length(iv) = 24', name='ck_notes_iv_length'),
        sa.CheckConstraint('length(content) <= 102400', name='ck_notes_content_length'),
    )


def downgrade() -> None:
    op.drop_table('notes')
