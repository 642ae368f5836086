"""
Services Package

Business logic modules for the meal planner.
"""

from .dietary import (
    RecipePools,
    is_recipe_compliant,
    filter_compliant_recipes,
    is_component_compliant,
    filter_compliant_components,
    partition_recipes,
)

from .planning import (
    PlanMode,
    PlanResult,
    PlannedSlot,
    SelectionState,
    generate_plan,
    iter_schedule_slots,
    pick_round_robin,
    select_recipe,
    select_meal_components,
)

from .shopping import (
    round_quantity,
    aggregate_shopping_items,
    generate_shopping_list,
    get_shopping_list,
    group_items_by_category,
    update_shopping_item,
    toggle_item_checked,
)

from .audit import (
    describe_change,
    log_change,
    get_plan_changes,
)

from .families import (
    create_family,
    add_member,
    update_diet_profile,
    get_family,
    get_member_in_family,
    set_inventory_item,
)

from .recipes import (
    create_recipe,
    create_food_component,
    get_recipe,
    get_recipes_for_family,
    set_recipe_flags,
    get_food_component,
)

from .plans import (
    week_number_for,
    is_after_cutoff,
    generate_weekly_plan,
    switch_template,
    check_can_modify_meal,
    update_meal_portions,
    swap_meal_recipe,
    set_meal_lock,
    add_meal,
    skip_meal,
    restore_meal,
    add_meal_guests,
    add_meal_component,
    swap_meal_component,
    update_meal_component,
    remove_meal_component,
    change_plan_status,
    validate_plan,
    unlock_plan,
    set_cutoff,
    list_family_plans,
)

from .schedules import (
    list_templates,
    create_template,
    update_template,
    delete_template,
    set_default_template,
    list_school_menus,
    create_school_menu,
    update_school_menu,
    delete_school_menu,
)

from .comments import (
    add_comment,
    edit_comment,
    delete_comment,
    list_comments,
)

__all__ = [
    # Dietary
    'RecipePools',
    'is_recipe_compliant',
    'filter_compliant_recipes',
    'is_component_compliant',
    'filter_compliant_components',
    'partition_recipes',
    # Planning
    'PlanMode',
    'PlanResult',
    'PlannedSlot',
    'SelectionState',
    'generate_plan',
    'iter_schedule_slots',
    'pick_round_robin',
    'select_recipe',
    'select_meal_components',
    # Shopping
    'round_quantity',
    'aggregate_shopping_items',
    'generate_shopping_list',
    'get_shopping_list',
    'group_items_by_category',
    'update_shopping_item',
    'toggle_item_checked',
    # Audit
    'describe_change',
    'log_change',
    'get_plan_changes',
    # Families
    'create_family',
    'add_member',
    'update_diet_profile',
    'get_family',
    'get_member_in_family',
    'set_inventory_item',
    # Recipes
    'create_recipe',
    'create_food_component',
    'get_recipe',
    'get_recipes_for_family',
    'set_recipe_flags',
    'get_food_component',
    # Plans
    'week_number_for',
    'is_after_cutoff',
    'generate_weekly_plan',
    'switch_template',
    'check_can_modify_meal',
    'update_meal_portions',
    'swap_meal_recipe',
    'set_meal_lock',
    'add_meal',
    'skip_meal',
    'restore_meal',
    'add_meal_guests',
    'add_meal_component',
    'swap_meal_component',
    'update_meal_component',
    'remove_meal_component',
    'change_plan_status',
    'validate_plan',
    'unlock_plan',
    'set_cutoff',
    'list_family_plans',
    # Schedules
    'list_templates',
    'create_template',
    'update_template',
    'delete_template',
    'set_default_template',
    'list_school_menus',
    'create_school_menu',
    'update_school_menu',
    'delete_school_menu',
    # Comments
    'add_comment',
    'edit_comment',
    'delete_comment',
    'list_comments',
]
