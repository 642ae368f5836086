"""Initial meal planner schema

Revision ID: 3c1f2a9d7e41
Revises:
Create Date: 2026-10-19 09:12:41.518203

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1f2a9d7e41'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'family',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('language', sa.String(length=5), nullable=True),
        sa.Column('default_template_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'meal_schedule_template',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('family_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('is_system', sa.Boolean(), nullable=True),
        sa.Column('schedule', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['family_id'], ['family.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_meal_schedule_template_family_id', 'meal_schedule_template', ['family_id'])

    # family <-> template is a cycle, so the family side is added afterwards
    with op.batch_alter_table('family', schema=None) as batch_op:
        batch_op.create_foreign_key('fk_family_default_template', 'meal_schedule_template',
                                    ['default_template_id'], ['id'], ondelete='SET NULL')

    op.create_table(
        'diet_profile',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('family_id', sa.Integer(), nullable=False),
        sa.Column('vegetarian', sa.Boolean(), nullable=True),
        sa.Column('vegan', sa.Boolean(), nullable=True),
        sa.Column('pescatarian', sa.Boolean(), nullable=True),
        sa.Column('gluten_free', sa.Boolean(), nullable=True),
        sa.Column('lactose_free', sa.Boolean(), nullable=True),
        sa.Column('kosher', sa.Boolean(), nullable=True),
        sa.Column('halal', sa.Boolean(), nullable=True),
        sa.Column('allergies', sa.JSON(), nullable=True),
        sa.Column('favorite_ratio', sa.Float(), nullable=True),
        sa.Column('max_novelties', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['family_id'], ['family.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('family_id'),
    )

    op.create_table(
        'family_member',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('family_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=10), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('portion_factor', sa.Float(), nullable=True),
        sa.Column('can_view_audit_log', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['family_id'], ['family.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_family_member_family_id', 'family_member', ['family_id'])

    op.create_table(
        'inventory_item',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('family_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(length=20), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.ForeignKeyConstraint(['family_id'], ['family.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_inventory_item_family_id', 'inventory_item', ['family_id'])

    op.create_table(
        'recipe',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('family_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('servings', sa.Integer(), nullable=True),
        sa.Column('vegetarian', sa.Boolean(), nullable=True),
        sa.Column('vegan', sa.Boolean(), nullable=True),
        sa.Column('gluten_free', sa.Boolean(), nullable=True),
        sa.Column('lactose_free', sa.Boolean(), nullable=True),
        sa.Column('kosher', sa.Boolean(), nullable=True),
        sa.Column('halal', sa.Boolean(), nullable=True),
        sa.Column('is_favorite', sa.Boolean(), nullable=True),
        sa.Column('is_novelty', sa.Boolean(), nullable=True),
        sa.Column('is_component_based', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['family_id'], ['family.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_recipe_family_id', 'recipe', ['family_id'])
    op.create_index('ix_recipe_title', 'recipe', ['title'])
    op.create_index('ix_recipe_category', 'recipe', ['category'])
    op.create_index('ix_recipe_is_favorite', 'recipe', ['is_favorite'])
    op.create_index('ix_recipe_is_novelty', 'recipe', ['is_novelty'])

    op.create_table(
        'ingredient',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('recipe_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(length=20), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('contains_gluten', sa.Boolean(), nullable=True),
        sa.Column('contains_lactose', sa.Boolean(), nullable=True),
        sa.Column('allergens', sa.JSON(), nullable=True),
        sa.Column('alternatives', sa.JSON(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipe.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_ingredient_recipe_id', 'ingredient', ['recipe_id'])

    op.create_table(
        'food_component',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('family_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=20), nullable=True),
        sa.Column('default_quantity', sa.Float(), nullable=True),
        sa.Column('unit', sa.String(length=20), nullable=False),
        sa.Column('shopping_category', sa.String(length=50), nullable=True),
        sa.Column('vegetarian', sa.Boolean(), nullable=True),
        sa.Column('vegan', sa.Boolean(), nullable=True),
        sa.Column('gluten_free', sa.Boolean(), nullable=True),
        sa.Column('lactose_free', sa.Boolean(), nullable=True),
        sa.Column('kosher', sa.Boolean(), nullable=True),
        sa.Column('halal', sa.Boolean(), nullable=True),
        sa.Column('allergens', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['family_id'], ['family.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_food_component_family_id', 'food_component', ['family_id'])
    op.create_index('ix_food_component_category', 'food_component', ['category'])

    op.create_table(
        'school_menu',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('family_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('meal_type', sa.String(length=10), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.ForeignKeyConstraint(['family_id'], ['family.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_school_menu_family_id', 'school_menu', ['family_id'])
    op.create_index('ix_school_menu_date', 'school_menu', ['date'])

    op.create_table(
        'weekly_plan',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('family_id', sa.Integer(), nullable=False),
        sa.Column('week_start_date', sa.Date(), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=15), nullable=True),
        sa.Column('cutoff_date', sa.Date(), nullable=True),
        sa.Column('cutoff_time', sa.String(length=5), nullable=True),
        sa.Column('allow_comments_after_cutoff', sa.Boolean(), nullable=True),
        sa.Column('template_id', sa.Integer(), nullable=True),
        sa.Column('validated_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['family_id'], ['family.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['template_id'], ['meal_schedule_template.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_weekly_plan_family_id', 'weekly_plan', ['family_id'])
    op.create_index('ix_weekly_plan_status', 'weekly_plan', ['status'])

    op.create_table(
        'meal',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('weekly_plan_id', sa.Integer(), nullable=False),
        sa.Column('day_of_week', sa.String(length=10), nullable=False),
        sa.Column('meal_type', sa.String(length=10), nullable=False),
        sa.Column('recipe_id', sa.Integer(), nullable=True),
        sa.Column('portions', sa.Integer(), nullable=False),
        sa.Column('locked', sa.Boolean(), nullable=True),
        sa.Column('is_school_meal', sa.Boolean(), nullable=True),
        sa.Column('is_external', sa.Boolean(), nullable=True),
        sa.Column('external_note', sa.String(length=200), nullable=True),
        sa.Column('is_skipped', sa.Boolean(), nullable=True),
        sa.Column('skip_reason', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['weekly_plan_id'], ['weekly_plan.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipe.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('weekly_plan_id', 'day_of_week', 'meal_type', name='uq_meal_plan_slot'),
    )
    op.create_index('ix_meal_weekly_plan_id', 'meal', ['weekly_plan_id'])
    op.create_index('ix_meal_recipe_id', 'meal', ['recipe_id'])

    op.create_table(
        'meal_guest',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('meal_id', sa.Integer(), nullable=False),
        sa.Column('adults', sa.Integer(), nullable=True),
        sa.Column('children', sa.Integer(), nullable=True),
        sa.Column('note', sa.String(length=200), nullable=True),
        sa.ForeignKeyConstraint(['meal_id'], ['meal.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_meal_guest_meal_id', 'meal_guest', ['meal_id'])

    op.create_table(
        'meal_component',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('meal_id', sa.Integer(), nullable=False),
        sa.Column('component_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(length=20), nullable=False),
        sa.Column('position', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['meal_id'], ['meal.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['component_id'], ['food_component.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_meal_component_meal_id', 'meal_component', ['meal_id'])
    op.create_index('ix_meal_component_component_id', 'meal_component', ['component_id'])

    op.create_table(
        'shopping_list',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('family_id', sa.Integer(), nullable=False),
        sa.Column('weekly_plan_id', sa.Integer(), nullable=False),
        sa.Column('generated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['family_id'], ['family.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['weekly_plan_id'], ['weekly_plan.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('weekly_plan_id'),
    )
    op.create_index('ix_shopping_list_family_id', 'shopping_list', ['family_id'])

    op.create_table(
        'shopping_item',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shopping_list_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(length=20), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('alternatives', sa.JSON(), nullable=True),
        sa.Column('recipe_names', sa.JSON(), nullable=True),
        sa.Column('checked', sa.Boolean(), nullable=True),
        sa.Column('in_stock', sa.Boolean(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['shopping_list_id'], ['shopping_list.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_shopping_item_shopping_list_id', 'shopping_item', ['shopping_list_id'])

    op.create_table(
        'plan_change_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('weekly_plan_id', sa.Integer(), nullable=False),
        sa.Column('meal_id', sa.Integer(), nullable=True),
        sa.Column('member_id', sa.Integer(), nullable=True),
        sa.Column('change_type', sa.String(length=30), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('description_en', sa.Text(), nullable=True),
        sa.Column('description_nl', sa.Text(), nullable=True),
        sa.Column('old_value', sa.JSON(), nullable=True),
        sa.Column('new_value', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['weekly_plan_id'], ['weekly_plan.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['meal_id'], ['meal.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['member_id'], ['family_member.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_plan_change_log_weekly_plan_id', 'plan_change_log', ['weekly_plan_id'])
    op.create_index('ix_plan_change_log_meal_id', 'plan_change_log', ['meal_id'])
    op.create_index('ix_plan_change_log_member_id', 'plan_change_log', ['member_id'])
    op.create_index('ix_plan_change_log_change_type', 'plan_change_log', ['change_type'])
    op.create_index('ix_plan_change_log_created_at', 'plan_change_log', ['created_at'])

    op.create_table(
        'meal_comment',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('meal_id', sa.Integer(), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_edited', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['meal_id'], ['meal.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['member_id'], ['family_member.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_meal_comment_meal_id', 'meal_comment', ['meal_id'])
    op.create_index('ix_meal_comment_member_id', 'meal_comment', ['member_id'])
    op.create_index('ix_meal_comment_created_at', 'meal_comment', ['created_at'])


def downgrade():
    op.drop_table('meal_comment')
    op.drop_table('plan_change_log')
    op.drop_table('shopping_item')
    op.drop_table('shopping_list')
    op.drop_table('meal_component')
    op.drop_table('meal_guest')
    op.drop_table('meal')
    op.drop_table('weekly_plan')
    op.drop_table('school_menu')
    op.drop_table('food_component')
    op.drop_table('ingredient')
    op.drop_table('recipe')
    op.drop_table('inventory_item')
    op.drop_table('family_member')
    op.drop_table('diet_profile')
    with op.batch_alter_table('family', schema=None) as batch_op:
        batch_op.drop_constraint('fk_family_default_template', type_='foreignkey')
    op.drop_table('meal_schedule_template')
    op.drop_table('family')
