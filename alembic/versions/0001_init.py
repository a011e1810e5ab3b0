from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'records',
        sa.Column('namespace', sa.String(64), primary_key=True),
        sa.Column('key', sa.String(128), primary_key=True),
        sa.Column('value', sa.JSON, nullable=False)
    )

def downgrade():
    op.drop_table('records')
