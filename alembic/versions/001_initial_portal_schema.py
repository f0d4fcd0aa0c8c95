"""Create portal schema: users, sessions, companies, logos, access grants, jobs

Revision ID: 001_initial_portal_schema
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_portal_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(*, updated: bool = True) -> list:
    columns = [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
        )
    return columns


def upgrade() -> None:
    """Create portal tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'app_users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='CLIENT'),
        sa.Column('display_name', sa.String(length=120), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'user_sessions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_sessions_user_id', 'user_sessions', ['user_id'])
    op.create_index('idx_user_sessions_user_revoked', 'user_sessions', ['user_id', 'revoked_at'])

    op.create_table(
        'companies',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('ref_id', sa.String(length=6), nullable=False),
        sa.Column('name', sa.String(length=160), nullable=False),
        sa.Column('industry', sa.String(length=180), nullable=True),
        sa.Column('website', sa.String(length=300), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_companies_ref_id', 'companies', ['ref_id'], unique=True)
    op.create_index('idx_companies_name', 'companies', ['name'])
    op.create_index('idx_companies_created_at', 'companies', ['created_at'])

    op.create_table(
        'company_logos',
        sa.Column('company_id', sa.Uuid(), nullable=False),
        sa.Column('data', sa.LargeBinary(), nullable=False),
        sa.Column('mime', sa.String(length=40), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('company_id'),
    )

    op.create_table(
        'company_access',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('company_id', sa.Uuid(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'company_id', name='uq_company_access_user_company'),
    )
    op.create_index('ix_company_access_user_id', 'company_access', ['user_id'])
    op.create_index('ix_company_access_company_id', 'company_access', ['company_id'])

    op.create_table(
        'jobs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('company_id', sa.Uuid(), nullable=False),
        sa.Column('job_ref', sa.String(length=80), nullable=True),
        sa.Column('position_title', sa.String(length=180), nullable=False),
        sa.Column('job_description', sa.Text(), nullable=False),
        sa.Column('location', sa.String(length=180), nullable=True),
        sa.Column('job_basis', sa.JSON(), nullable=False),
        sa.Column('salary_bands', sa.JSON(), nullable=False),
        sa.Column('seniority', sa.String(length=20), nullable=False),
        sa.Column('categories', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='ACTIVE'),
        sa.Column('inactivated_reason', sa.String(length=400), nullable=True),
        sa.Column('inactivated_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_jobs_company_id', 'jobs', ['company_id'])
    op.create_index('ix_jobs_status', 'jobs', ['status'])
    op.create_index('idx_jobs_status_updated_at', 'jobs', ['status', 'updated_at'])
    op.create_index('idx_jobs_company_status', 'jobs', ['company_id', 'status'])


def downgrade() -> None:
    """Drop portal tables."""
    op.drop_table('jobs')
    op.drop_table('company_access')
    op.drop_table('company_logos')
    op.drop_index('idx_companies_created_at', table_name='companies')
    op.drop_index('idx_companies_name', table_name='companies')
    op.drop_index('ix_companies_ref_id', table_name='companies')
    op.drop_table('companies')
    op.drop_table('user_sessions')
    op.drop_table('app_users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
