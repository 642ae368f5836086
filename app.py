import logging
import random

from flask import Flask, request, jsonify
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import get_config
from constants import DEFAULT_SCHEDULE, DEFAULT_TEMPLATE_NAME
from models import db, Meal, MealScheduleTemplate, ShoppingItem
from utils.errors import AppError, ValidationError, PermissionDeniedError, NotFoundError
from services import (
    create_family, add_member, update_diet_profile, get_family, get_member_in_family, set_inventory_item,
    create_recipe, create_food_component, get_recipe, get_recipes_for_family, set_recipe_flags, get_food_component,
    generate_weekly_plan, switch_template, update_meal_portions, swap_meal_recipe, set_meal_lock,
    add_meal, skip_meal, restore_meal, add_meal_guests, change_plan_status, validate_plan,
    unlock_plan, set_cutoff, list_family_plans,
    add_meal_component, swap_meal_component, update_meal_component, remove_meal_component,
    list_templates, create_template, update_template, delete_template, set_default_template,
    list_school_menus, create_school_menu, update_school_menu, delete_school_menu,
    add_comment, edit_comment, delete_comment, list_comments,
    get_plan_changes,
    generate_shopping_list, get_shopping_list, group_items_by_category,
    update_shopping_item, toggle_item_checked,
)
from services.families import serialize_family, serialize_member, require_privileged
from services.recipes import serialize_recipe, check_recipe_visible
from services.plans import get_plan, get_meal, get_meal_component, get_template, serialize_plan, serialize_meal
from services.schedules import get_family_template, get_school_menu, serialize_template, serialize_school_menu
from services.comments import get_comment, serialize_comment
from services.shopping import serialize_shopping_item
from services.planning import PlanMode

logger = logging.getLogger(__name__)

migrate = Migrate()

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def configure_logging(app):
    """Root logger at LOG_LEVEL with one stream handler."""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
    app.logger.setLevel(level)


def create_app(env=None):
    app = Flask(__name__)
    app.config.from_object(get_config(env))
    app.json.sort_keys = False

    configure_logging(app)
    db.init_app(app)
    migrate.init_app(app, db)

    register_error_handlers(app)
    register_routes(app)
    return app


def init_db(app):
    """Create tables and the system schedule template."""
    with app.app_context():
        db.create_all()
        if not MealScheduleTemplate.query.filter_by(is_system=True, name=DEFAULT_TEMPLATE_NAME).first():
            db.session.add(MealScheduleTemplate(
                name=DEFAULT_TEMPLATE_NAME,
                description='Lunch and dinner every day',
                is_system=True,
                schedule=DEFAULT_SCHEDULE,
            ))
            db.session.commit()


# ============================================
# HELPERS
# ============================================

def success(data=None, status=200):
    return jsonify({'status': 'success', 'data': data}), status


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def acting_member(family_id):
    """The member named by the X-Member-Id header, checked against the family."""
    member_id = request.headers.get('X-Member-Id', type=int)
    if member_id is None:
        raise PermissionDeniedError('X-Member-Id header is required')
    return get_member_in_family(family_id, member_id)


def plan_and_member(plan_id):
    plan = get_plan(plan_id)
    return plan, acting_member(plan.family_id)


def rng_from(data):
    seed = data.get('seed')
    return random.Random(seed) if seed is not None else None


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(e):
        logger.warning('%s %s -> %s: %s', request.method, request.path, e.status_code, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'status': 'error', 'message': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        db.session.rollback()
        logger.exception('Unhandled error on %s %s', request.method, request.path)
        return jsonify({'status': 'error', 'message': 'Internal server error'}), 500


def register_routes(app):

    # ============================================
    # ROUTES - HEALTH
    # ============================================

    @app.route('/health')
    def health():
        return success({'healthy': True})

    # ============================================
    # ROUTES - FAMILIES
    # ============================================

    @app.route('/families', methods=['POST'])
    def family_create():
        data = json_body()
        family, admin = create_family(
            data.get('name'),
            data.get('creator_name'),
            language=data.get('language', 'fr'),
            diet=data.get('diet'),
        )
        return success({'family': serialize_family(family), 'member': serialize_member(admin)}, 201)

    @app.route('/families/<int:family_id>')
    def family_view(family_id):
        family = get_family(family_id)
        acting_member(family.id)
        return success(serialize_family(family))

    @app.route('/families/<int:family_id>/members', methods=['POST'])
    def family_member_add(family_id):
        family = get_family(family_id)
        require_privileged(acting_member(family.id), 'add members')
        data = json_body()
        member = add_member(
            family,
            data.get('name'),
            role=data.get('role', 'MEMBER'),
            age=data.get('age'),
            portion_factor=data.get('portion_factor', 1.0),
            can_view_audit_log=data.get('can_view_audit_log', True),
        )
        return success(serialize_member(member), 201)

    @app.route('/families/<int:family_id>/diet-profile', methods=['PUT'])
    def family_diet_update(family_id):
        family = get_family(family_id)
        require_privileged(acting_member(family.id), 'change the diet profile')
        update_diet_profile(family, json_body())
        return success(serialize_family(family)['diet_profile'])

    @app.route('/families/<int:family_id>/inventory', methods=['PUT'])
    def family_inventory_set(family_id):
        family = get_family(family_id)
        acting_member(family.id)
        data = json_body()
        item = set_inventory_item(
            family,
            data.get('name'),
            data.get('quantity'),
            unit=data.get('unit', 'piece'),
            category=data.get('category', 'other'),
        )
        return success({'id': item.id, 'name': item.name, 'quantity': item.quantity, 'unit': item.unit})

    # ============================================
    # ROUTES - RECIPES
    # ============================================

    @app.route('/recipes', methods=['POST'])
    def recipe_add():
        data = json_body()
        family = None
        if data.get('family_id') is not None:
            family = get_family(data['family_id'])
            acting_member(family.id)
        recipe = create_recipe(
            data.get('title'),
            category=data.get('category'),
            servings=data.get('servings', 4),
            ingredients=data.get('ingredients'),
            flags=data.get('flags'),
            family=family,
            is_favorite=data.get('is_favorite', False),
            is_novelty=data.get('is_novelty', False),
        )
        return success(serialize_recipe(recipe), 201)

    @app.route('/families/<int:family_id>/recipes')
    def recipes_list(family_id):
        family = get_family(family_id)
        acting_member(family.id)
        recipes = get_recipes_for_family(family)
        return success([serialize_recipe(r, include_ingredients=False) for r in recipes])

    @app.route('/recipes/<int:recipe_id>/flags', methods=['POST'])
    def recipe_flags(recipe_id):
        data = json_body()
        recipe = get_recipe(recipe_id)
        family = get_family(recipe.family_id if recipe.family_id is not None else data.get('family_id'))
        check_recipe_visible(recipe, family)
        acting_member(family.id)
        set_recipe_flags(recipe, is_favorite=data.get('is_favorite'), is_novelty=data.get('is_novelty'))
        return success(serialize_recipe(recipe, include_ingredients=False))

    @app.route('/food-components', methods=['POST'])
    def food_component_add():
        data = json_body()
        family = None
        if data.get('family_id') is not None:
            family = get_family(data['family_id'])
            acting_member(family.id)
        component = create_food_component(
            data.get('name'),
            data.get('category'),
            data.get('unit'),
            default_quantity=data.get('default_quantity', 1.0),
            shopping_category=data.get('shopping_category', 'produce'),
            flags=data.get('flags'),
            allergens=data.get('allergens'),
            family=family,
        )
        return success({'id': component.id, 'name': component.name, 'category': component.category}, 201)

    # ============================================
    # ROUTES - SCHEDULE TEMPLATES
    # ============================================

    @app.route('/families/<int:family_id>/templates', methods=['GET', 'POST'])
    def templates(family_id):
        family = get_family(family_id)
        member = acting_member(family.id)
        if request.method == 'POST':
            data = json_body()
            template = create_template(family, member, data.get('name'), data.get('schedule'),
                                       description=data.get('description'))
            return success(serialize_template(template), 201)
        return success([serialize_template(t) for t in list_templates(family)])

    @app.route('/families/<int:family_id>/templates/<int:template_id>', methods=['GET', 'PUT', 'DELETE'])
    def template_detail(family_id, template_id):
        family = get_family(family_id)
        member = acting_member(family.id)
        template = get_family_template(family, template_id)
        if request.method == 'DELETE':
            delete_template(template, family, member)
            return success({'deleted': template_id})
        if request.method == 'PUT':
            data = json_body()
            update_template(template, family, member, name=data.get('name'),
                            description=data.get('description'), schedule=data.get('schedule'))
        return success(serialize_template(template))

    @app.route('/families/<int:family_id>/default-template', methods=['PUT'])
    def family_default_template(family_id):
        family = get_family(family_id)
        member = acting_member(family.id)
        data = json_body()
        template = get_family_template(family, data['template_id']) if data.get('template_id') else None
        set_default_template(family, member, template)
        return success(serialize_family(family))

    # ============================================
    # ROUTES - SCHOOL MENUS
    # ============================================

    @app.route('/families/<int:family_id>/school-menus', methods=['GET', 'POST'])
    def school_menus(family_id):
        family = get_family(family_id)
        member = acting_member(family.id)
        if request.method == 'POST':
            data = json_body()
            menu = create_school_menu(family, member, data.get('date'), data.get('title'),
                                      meal_type=data.get('meal_type', 'LUNCH'), category=data.get('category'))
            return success(serialize_school_menu(menu), 201)
        menus = list_school_menus(family, request.args.get('start_date'), request.args.get('end_date'))
        return success([serialize_school_menu(m) for m in menus])

    @app.route('/families/<int:family_id>/school-menus/<int:menu_id>', methods=['PUT', 'DELETE'])
    def school_menu_detail(family_id, menu_id):
        family = get_family(family_id)
        member = acting_member(family.id)
        menu = get_school_menu(family, menu_id)
        if request.method == 'DELETE':
            delete_school_menu(menu, member)
            return success({'deleted': menu_id})
        update_school_menu(menu, member, json_body())
        return success(serialize_school_menu(menu))

    # ============================================
    # ROUTES - WEEKLY PLANS
    # ============================================

    @app.route('/families/<int:family_id>/weekly-plans')
    def plans_list(family_id):
        family = get_family(family_id)
        member = acting_member(family.id)
        plans = list_family_plans(family, member, limit=request.args.get('limit', 10))
        return success([serialize_plan(p) for p in plans])

    def _generate(family_id, mode):
        family = get_family(family_id)
        member = acting_member(family.id)
        data = json_body()
        template = get_template(data['template_id']) if data.get('template_id') else None
        plan, warnings = generate_weekly_plan(
            family,
            data.get('week_start'),
            mode=mode,
            template=template,
            member=member,
            rng=rng_from(data),
        )
        return success(serialize_plan(plan, warnings), 201)

    @app.route('/weekly-plans/<int:family_id>/generate', methods=['POST'])
    def plan_generate(family_id):
        return _generate(family_id, json_body().get('mode', PlanMode.AUTO.value))

    @app.route('/weekly-plans/<int:family_id>/generate-express', methods=['POST'])
    def plan_generate_express(family_id):
        return _generate(family_id, PlanMode.EXPRESS)

    @app.route('/weekly-plans/<int:plan_id>')
    def plan_view(plan_id):
        plan, _ = plan_and_member(plan_id)
        return success(serialize_plan(plan))

    @app.route('/weekly-plans/<int:plan_id>/status', methods=['POST'])
    def plan_status(plan_id):
        plan, member = plan_and_member(plan_id)
        change_plan_status(plan, member, json_body().get('status'))
        return success(serialize_plan(plan))

    @app.route('/weekly-plans/<int:plan_id>/validate', methods=['POST'])
    def plan_validate(plan_id):
        plan, member = plan_and_member(plan_id)
        validate_plan(plan, member)
        return success(serialize_plan(plan))

    @app.route('/weekly-plans/<int:plan_id>/unlock', methods=['POST'])
    def plan_unlock(plan_id):
        plan, member = plan_and_member(plan_id)
        unlock_plan(plan, member)
        return success(serialize_plan(plan))

    @app.route('/weekly-plans/<int:plan_id>/cutoff', methods=['PUT'])
    def plan_cutoff(plan_id):
        plan, member = plan_and_member(plan_id)
        data = json_body()
        set_cutoff(
            plan, member,
            data.get('cutoff_date'),
            cutoff_time=data.get('cutoff_time'),
            allow_comments_after_cutoff=data.get('allow_comments_after_cutoff'),
        )
        return success(serialize_plan(plan))

    @app.route('/weekly-plans/<int:plan_id>/template', methods=['POST'])
    def plan_template(plan_id):
        plan, member = plan_and_member(plan_id)
        data = json_body()
        if not data.get('template_id'):
            raise ValidationError('template_id is required')
        _, warnings = switch_template(plan, member, get_template(data['template_id']), rng=rng_from(data))
        return success(serialize_plan(plan, warnings))

    # ============================================
    # ROUTES - MEALS
    # ============================================

    @app.route('/weekly-plans/<int:plan_id>/meals', methods=['POST'])
    def meal_add(plan_id):
        plan, member = plan_and_member(plan_id)
        data = json_body()
        recipe = get_recipe(data['recipe_id']) if data.get('recipe_id') else None
        meal = add_meal(plan, member, data.get('day_of_week'), data.get('meal_type'),
                        recipe=recipe, portions=data.get('portions'))
        return success(serialize_meal(meal), 201)

    @app.route('/weekly-plans/<int:plan_id>/meals/<int:meal_id>', methods=['PUT'])
    def meal_update(plan_id, meal_id):
        plan, member = plan_and_member(plan_id)
        meal = get_meal(plan, meal_id)
        data = json_body()
        if 'recipe_id' in data:
            swap_meal_recipe(meal, member, get_recipe(data['recipe_id']))
        if 'portions' in data:
            update_meal_portions(meal, member, data['portions'])
        return success(serialize_meal(meal))

    @app.route('/weekly-plans/<int:plan_id>/meals/<int:meal_id>/lock', methods=['POST'])
    def meal_lock(plan_id, meal_id):
        plan, member = plan_and_member(plan_id)
        meal = get_meal(plan, meal_id)
        set_meal_lock(meal, member, json_body().get('locked', True))
        return success(serialize_meal(meal))

    @app.route('/weekly-plans/<int:plan_id>/meals/<int:meal_id>/skip', methods=['POST'])
    def meal_skip(plan_id, meal_id):
        plan, member = plan_and_member(plan_id)
        meal = get_meal(plan, meal_id)
        skip_meal(meal, member, json_body().get('reason'))
        return success(serialize_meal(meal))

    @app.route('/weekly-plans/<int:plan_id>/meals/<int:meal_id>/restore', methods=['POST'])
    def meal_restore(plan_id, meal_id):
        plan, member = plan_and_member(plan_id)
        meal = get_meal(plan, meal_id)
        restore_meal(meal, member)
        return success(serialize_meal(meal))

    @app.route('/weekly-plans/<int:plan_id>/meals/<int:meal_id>/guests', methods=['POST'])
    def meal_guests(plan_id, meal_id):
        plan, member = plan_and_member(plan_id)
        meal = get_meal(plan, meal_id)
        data = json_body()
        add_meal_guests(meal, member, adults=data.get('adults', 0), children=data.get('children', 0),
                        note=data.get('note'))
        return success(serialize_meal(meal))

    @app.route('/weekly-plans/<int:plan_id>/meals/<int:meal_id>/components', methods=['POST'])
    def meal_component_add(plan_id, meal_id):
        plan, member = plan_and_member(plan_id)
        meal = get_meal(plan, meal_id)
        data = json_body()
        if not data.get('component_id'):
            raise ValidationError('component_id is required')
        add_meal_component(meal, member, get_food_component(data['component_id']),
                           quantity=data.get('quantity'), unit=data.get('unit'), position=data.get('position'))
        return success(serialize_meal(meal), 201)

    @app.route('/weekly-plans/<int:plan_id>/meals/<int:meal_id>/components/<int:meal_component_id>',
               methods=['PUT', 'DELETE'])
    def meal_component_change(plan_id, meal_id, meal_component_id):
        plan, member = plan_and_member(plan_id)
        meal = get_meal(plan, meal_id)
        meal_component = get_meal_component(meal, meal_component_id)
        if request.method == 'DELETE':
            remove_meal_component(meal, member, meal_component)
        else:
            update_meal_component(meal, member, meal_component, json_body())
        return success(serialize_meal(meal))

    @app.route('/weekly-plans/<int:plan_id>/meals/<int:meal_id>/components/<int:meal_component_id>/swap',
               methods=['POST'])
    def meal_component_swap(plan_id, meal_id, meal_component_id):
        plan, member = plan_and_member(plan_id)
        meal = get_meal(plan, meal_id)
        meal_component = get_meal_component(meal, meal_component_id)
        data = json_body()
        if not data.get('component_id'):
            raise ValidationError('component_id is required')
        swap_meal_component(meal, member, meal_component, get_food_component(data['component_id']),
                            quantity=data.get('quantity'), unit=data.get('unit'))
        return success(serialize_meal(meal))

    # ============================================
    # ROUTES - COMMENTS
    # ============================================

    def _meal_and_member(meal_id):
        meal = db.session.get(Meal, meal_id)
        if meal is None:
            raise NotFoundError('Meal not found')
        return meal, acting_member(meal.weekly_plan.family_id)

    @app.route('/meals/<int:meal_id>/comments', methods=['GET', 'POST'])
    def meal_comments(meal_id):
        meal, member = _meal_and_member(meal_id)
        if request.method == 'POST':
            comment = add_comment(meal, member, json_body().get('content'))
            return success(serialize_comment(comment), 201)
        return success([serialize_comment(c) for c in list_comments(meal)])

    @app.route('/meals/<int:meal_id>/comments/<int:comment_id>', methods=['PUT', 'DELETE'])
    def meal_comment_change(meal_id, comment_id):
        meal, member = _meal_and_member(meal_id)
        comment = get_comment(meal, comment_id)
        if request.method == 'DELETE':
            delete_comment(comment, member)
            return success({'deleted': comment_id})
        edit_comment(comment, member, json_body().get('content'))
        return success(serialize_comment(comment))

    # ============================================
    # ROUTES - AUDIT LOG
    # ============================================

    @app.route('/weekly-plans/<int:plan_id>/audit-log')
    def plan_audit_log(plan_id):
        plan, member = plan_and_member(plan_id)
        changes = get_plan_changes(
            plan, member,
            change_type=request.args.get('change_type'),
            limit=request.args.get('limit', 50),
            offset=request.args.get('offset', 0),
        )
        return success(changes)

    # ============================================
    # ROUTES - SHOPPING LIST
    # ============================================

    def _serialize_list(shopping_list):
        items = [serialize_shopping_item(i) for i in shopping_list.items]
        return {
            'id': shopping_list.id,
            'weekly_plan_id': shopping_list.weekly_plan_id,
            'generated_at': shopping_list.generated_at.isoformat() if shopping_list.generated_at else None,
            'items': items,
            'categories': [{'category': label, 'items': group} for label, group in group_items_by_category(items)],
        }

    @app.route('/shopping-lists/generate/<int:plan_id>', methods=['POST'])
    def shopping_generate(plan_id):
        plan_and_member(plan_id)
        return success(_serialize_list(generate_shopping_list(plan_id)), 201)

    @app.route('/shopping-lists/<int:plan_id>')
    def shopping_view(plan_id):
        plan_and_member(plan_id)
        return success(_serialize_list(get_shopping_list(plan_id)))

    def _item_and_member(item_id):
        item = db.session.get(ShoppingItem, item_id)
        if item is None:
            raise NotFoundError('Shopping item not found')
        acting_member(item.shopping_list.family_id)
        return item

    @app.route('/shopping-lists/items/<int:item_id>', methods=['PUT'])
    def shopping_item_update(item_id):
        _item_and_member(item_id)
        item = update_shopping_item(item_id, json_body())
        return success(serialize_shopping_item(item))

    @app.route('/shopping-lists/items/<int:item_id>/toggle', methods=['POST'])
    def shopping_item_toggle(item_id):
        _item_and_member(item_id)
        return success(serialize_shopping_item(toggle_item_checked(item_id)))


if __name__ == '__main__':
    app = create_app()
    init_db(app)
    # host='0.0.0.0' allows access from other devices on the network
    app.run(debug=app.config.get('DEBUG', False), host='0.0.0.0', port=5000, use_reloader=False)
