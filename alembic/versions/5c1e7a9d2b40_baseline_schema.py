"""baseline_schema

Revision ID: 5c1e7a9d2b40
Revises:
Create Date: 2026-10-19 09:12:44.118305

Production-safe migration: only creates tables that do not exist yet.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '5c1e7a9d2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    if not table_exists('users'):
        op.create_table('users',
            sa.Column('id', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('first_name', sa.String(), nullable=True),
            sa.Column('last_name', sa.String(), nullable=True),
            sa.Column('profile_image_url', sa.String(), nullable=True),
            sa.Column('subscription_tier', sa.String(), server_default='free', nullable=False),
            sa.Column('subscription_activated_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('subscription_expires_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('pending_payment_order_id', sa.String(), nullable=True),
            sa.Column('total_applications_sent', sa.Integer(), server_default='0', nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    if not table_exists('sessions'):
        op.create_table('sessions',
            sa.Column('sid', sa.String(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('sid')
        )
        op.create_index(op.f('ix_sessions_user_id'), 'sessions', ['user_id'], unique=False)
        op.create_index(op.f('ix_sessions_expires_at'), 'sessions', ['expires_at'], unique=False)

    if not table_exists('payment_orders'):
        op.create_table('payment_orders',
            sa.Column('order_id', sa.String(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('gateway', sa.String(), nullable=False),
            sa.Column('amount', sa.Float(), nullable=False),
            sa.Column('currency', sa.String(), nullable=False),
            sa.Column('customer_email', sa.String(), nullable=True),
            sa.Column('customer_name', sa.String(), nullable=True),
            sa.Column('customer_phone', sa.String(), nullable=True),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('payment_session_id', sa.String(), nullable=True),
            sa.Column('return_url', sa.String(), nullable=True),
            sa.Column('notify_url', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('order_id')
        )
        op.create_index(op.f('ix_payment_orders_user_id'), 'payment_orders', ['user_id'], unique=False)
        op.create_index(op.f('ix_payment_orders_status'), 'payment_orders', ['status'], unique=False)

    if not table_exists('resumes'):
        op.create_table('resumes',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('original_filename', sa.String(), nullable=False),
            sa.Column('mime_type', sa.String(), nullable=False),
            sa.Column('extracted_text', sa.Text(), nullable=True),
            sa.Column('storage_ref', sa.String(), nullable=False),
            sa.Column('file_size', sa.Integer(), nullable=False),
            sa.Column('uploaded_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id')
        )

    if not table_exists('email_applications'):
        op.create_table('email_applications',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('job_title', sa.Text(), nullable=False),
            sa.Column('company_name', sa.Text(), nullable=False),
            sa.Column('company_email', sa.Text(), nullable=False),
            sa.Column('email_subject', sa.Text(), nullable=True),
            sa.Column('email_body', sa.Text(), nullable=True),
            sa.Column('job_url', sa.Text(), nullable=True),
            sa.Column('company_website', sa.Text(), nullable=True),
            sa.Column('message_id', sa.String(), nullable=True),
            sa.Column('sent_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_email_applications_user_id'), 'email_applications', ['user_id'], unique=False)
        op.create_index(op.f('ix_email_applications_sent_at'), 'email_applications', ['sent_at'], unique=False)

    if not table_exists('job_searches'):
        op.create_table('job_searches',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('linkedin_url', sa.Text(), nullable=False),
            sa.Column('status', sa.String(length=50), nullable=False),
            sa.Column('results', sa.JSON(), nullable=True),
            sa.Column('total_jobs_found', sa.Integer(), nullable=True),
            sa.Column('free_jobs_shown', sa.Integer(), nullable=True),
            sa.Column('pro_jobs_shown', sa.Integer(), nullable=True),
            sa.Column('error_message', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_job_searches_user_id'), 'job_searches', ['user_id'], unique=False)
        op.create_index(op.f('ix_job_searches_created_at'), 'job_searches', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_job_searches_created_at'), table_name='job_searches')
    op.drop_index(op.f('ix_job_searches_user_id'), table_name='job_searches')
    op.drop_table('job_searches')

    op.drop_index(op.f('ix_email_applications_sent_at'), table_name='email_applications')
    op.drop_index(op.f('ix_email_applications_user_id'), table_name='email_applications')
    op.drop_table('email_applications')

    op.drop_table('resumes')

    op.drop_index(op.f('ix_payment_orders_status'), table_name='payment_orders')
    op.drop_index(op.f('ix_payment_orders_user_id'), table_name='payment_orders')
    op.drop_table('payment_orders')

    op.drop_index(op.f('ix_sessions_expires_at'), table_name='sessions')
    op.drop_index(op.f('ix_sessions_user_id'), table_name='sessions')
    op.drop_table('sessions')

    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
