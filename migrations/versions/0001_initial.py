"""initial tables

Revision ID: 0001
Revises: 
Create Date: 2025-11-03

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('teacher',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('commission_rate', sa.Float(), nullable=False, server_default='0'),
        sa.Column('color', sa.String(length=32), nullable=True),
    )
    op.create_index('ix_teacher_name', 'teacher', ['name'])

    op.create_table('student',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('grade', sa.String(length=64), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('parent_name', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
    )
    op.create_index('ix_student_name', 'student', ['name'])

    op.create_table('lesson',
        sa.Column('id', sa.String(length=16), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('subject', sa.String(length=128), nullable=True),
        sa.Column('lesson_type', sa.String(length=64), nullable=False, server_default='PRIVATE'),
        sa.Column('teacher_id', sa.String(length=64),
                  sa.ForeignKey('teacher.id', ondelete='SET NULL'), nullable=True),
        sa.Column('student_ids', sa.JSON(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('price', sa.Float(), nullable=False, server_default='0'),
        sa.Column('cost', sa.Float(), nullable=False, server_default='0'),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('lesson_plan', sa.Text(), nullable=False, server_default=''),
        sa.Column('student_notes', sa.JSON(), nullable=False),
    )
    op.create_index('ix_lesson_teacher_date', 'lesson', ['teacher_id', 'date'])
    op.create_index('ix_lesson_date', 'lesson', ['date'])

    op.create_table('availability',
        sa.Column('id', sa.String(length=96), primary_key=True),
        sa.Column('teacher_id', sa.String(length=64),
                  sa.ForeignKey('teacher.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time_slots', sa.JSON(), nullable=False),
        sa.UniqueConstraint('teacher_id', 'date', name='uq_availability_teacher_date'),
    )
    op.create_index('ix_availability_teacher_id', 'availability', ['teacher_id'])

def downgrade():
    op.drop_index('ix_availability_teacher_id', table_name='availability')
    op.drop_table('availability')
    op.drop_index('ix_lesson_date', table_name='lesson')
    op.drop_index('ix_lesson_teacher_date', table_name='lesson')
    op.drop_table('lesson')
    op.drop_index('ix_student_name', table_name='student')
    op.drop_table('student')
    op.drop_index('ix_teacher_name', table_name='teacher')
    op.drop_table('teacher')
