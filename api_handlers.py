"""
API Handlers for the web app
Expose the state container's callback surface over HTTP
"""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Dict

from aiohttp import web

from analytics import (
    calculate_kpis,
    category_chart_data,
    category_name,
    daily_chart_data,
    dashboard_transactions,
    filter_transactions,
    filtered_summary,
    goal_progress,
    is_overdue,
    monthly_comparison,
    page_count,
    paginate,
    reminder_stats,
    sort_by_date_desc,
    sort_reminders,
    upcoming_reminders,
)
from database.models import Category, Goal, Reminder, Transaction
from shared.constants import (
    COLLECTION_TRANSACTIONS,
    COLLECTION_CATEGORIES,
    COLLECTION_REMINDERS,
    COLLECTION_GOALS,
)
from store import StoreRegistry

logger = logging.getLogger(__name__)

REGISTRY_KEY = web.AppKey("registry", StoreRegistry)

IDENTITY_HEADER = 'X-User-Id'

# collection -> (model, store method suffix)
ENTITY_ROUTES = {
    COLLECTION_TRANSACTIONS: (Transaction, 'transaction'),
    COLLECTION_CATEGORIES: (Category, 'category'),
    COLLECTION_REMINDERS: (Reminder, 'reminder'),
    COLLECTION_GOALS: (Goal, 'goal'),
}


def to_json(value: Any) -> Any:
    """Convert Decimal/date values (nested) into JSON-friendly ones"""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    return value


def error_response(message: str, status: int) -> web.Response:
    return web.json_response({'error': message}, status=status)


async def read_json(request) -> Dict[str, Any]:
    """
    Parse a JSON object body

    Raises:
        ValueError: If the body is not a JSON object
    """
    data = await request.json()
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


# ==================== MIDDLEWARE ====================

@web.middleware
async def identity_middleware(request, handler):
    """
    Identity middleware
    Hands the handler the state container of the identity header
    (request['store']); containers are never shared between identities
    """
    if not request.path.startswith('/api/'):
        return await handler(request)

    registry = request.app[REGISTRY_KEY]
    user_id = request.headers.get(IDENTITY_HEADER) or None

    request['store'] = await registry.get(user_id)

    return await handler(request)


class APIHandler:
    """Handler for API requests from the web app"""

    # ==================== STATE ====================

    @staticmethod
    async def get_state(request):
        """
        GET /api/state
        Full application state of the current session
        """
        store = request['store']

        return web.json_response({
            'userId': store.user_id,
            'persistence': 'remote' if store.is_remote else 'local',
            'isLoading': store.is_loading,
            'state': store.state.to_dict()
        })

    # ==================== TRANSACTIONS ====================

    @staticmethod
    async def get_transactions(request):
        """
        GET /api/transactions?page=N
        Records page: filtered, newest first, paginated
        """
        try:
            store = request['store']
            state = store.state
            page = int(request.query.get('page', 1))

            filtered = sort_by_date_desc(filter_transactions(state.transactions, state.filters))

            items = []
            for t in paginate(filtered, page):
                item = t.to_dict()
                item['categoryName'] = category_name(t.category_id, state.categories)
                items.append(item)

            return web.json_response({
                'transactions': items,
                'count': len(filtered),
                'page': page,
                'pages': page_count(len(filtered)),
                'summary': to_json(filtered_summary(filtered))
            })

        except ValueError as e:
            return error_response(str(e), 400)

        except Exception as e:
            logger.error(f"Get transactions error: {e}", exc_info=True)
            return error_response(str(e), 500)

    # ==================== GENERIC ENTITY CRUD ====================

    @staticmethod
    async def list_entities(request):
        """
        GET /api/{categories|reminders|goals}
        """
        store = request['store']
        collection = request.match_info['collection']
        state = store.state

        if collection == COLLECTION_REMINDERS:
            items = []
            for r in sort_reminders(state.reminders):
                item = r.to_dict()
                item['overdue'] = is_overdue(r)
                items.append(item)
            return web.json_response({'reminders': items, 'stats': reminder_stats(state.reminders)})

        if collection == COLLECTION_GOALS:
            items = []
            for g in state.goals:
                item = g.to_dict()
                item['progress'] = goal_progress(g)
                items.append(item)
            return web.json_response({'goals': items})

        return web.json_response({collection: [item.to_dict() for item in getattr(state, collection)]})

    @staticmethod
    async def create_entity(request):
        """
        POST /api/{collection}
        """
        collection = request.match_info['collection']
        model, suffix = ENTITY_ROUTES[collection]

        try:
            store = request['store']
            data = await read_json(request)

            entity = replace(model.from_dict(data), id=None)
            entity.validate()

        except (ValueError, TypeError) as e:
            return error_response(str(e), 400)

        try:
            created = await getattr(store, f'add_{suffix}')(entity)

            if created is None:
                return error_response(f'Failed to create {suffix}', 500)

            return web.json_response(created.to_dict(), status=201)

        except Exception as e:
            logger.error(f"Create {suffix} error: {e}", exc_info=True)
            return error_response(str(e), 500)

    @staticmethod
    async def update_entity(request):
        """
        PUT /api/{collection}/{id}
        """
        collection = request.match_info['collection']
        entity_id = request.match_info['id']
        model, suffix = ENTITY_ROUTES[collection]

        try:
            store = request['store']
            changes = model.parse_changes(await read_json(request))

        except (ValueError, TypeError) as e:
            return error_response(str(e), 400)

        try:
            existing = next((item for item in getattr(store.state, collection) if item.id == entity_id), None)
            if existing is None:
                return error_response(f'{suffix.capitalize()} not found', 404)

            try:
                existing.apply(changes).validate()
            except ValueError as e:
                return error_response(str(e), 400)

            updated = await getattr(store, f'update_{suffix}')(entity_id, changes)
            if not updated:
                return error_response(f'Failed to update {suffix}', 500)

            current = next(item for item in getattr(store.state, collection) if item.id == entity_id)
            return web.json_response(current.to_dict())

        except Exception as e:
            logger.error(f"Update {suffix} error: {e}", exc_info=True)
            return error_response(str(e), 500)

    @staticmethod
    async def delete_entity(request):
        """
        DELETE /api/{collection}/{id}
        """
        collection = request.match_info['collection']
        entity_id = request.match_info['id']
        _, suffix = ENTITY_ROUTES[collection]

        try:
            store = request['store']

            if not any(item.id == entity_id for item in getattr(store.state, collection)):
                return error_response(f'{suffix.capitalize()} not found', 404)

            deleted = await getattr(store, f'delete_{suffix}')(entity_id)
            if not deleted:
                return error_response(f'Failed to delete {suffix}', 500)

            return web.json_response({'message': f'{suffix.capitalize()} deleted successfully'})

        except Exception as e:
            logger.error(f"Delete {suffix} error: {e}", exc_info=True)
            return error_response(str(e), 500)

    # ==================== PLAN & FILTERS ====================

    @staticmethod
    async def set_plan(request):
        """
        PUT /api/plan
        """
        try:
            store = request['store']
            data = await read_json(request)

            if not store.set_plan(data.get('plan')):
                return error_response('Unknown plan', 400)

            return web.json_response({'userPlan': store.state.user_plan})

        except ValueError as e:
            return error_response(str(e), 400)

    @staticmethod
    async def update_filters(request):
        """
        PUT /api/filters
        """
        try:
            store = request['store']
            store.update_filters(await read_json(request))
            return web.json_response(store.state.filters.to_dict())

        except ValueError as e:
            return error_response(str(e), 400)

    @staticmethod
    async def reset_filters(request):
        """
        DELETE /api/filters
        """
        store = request['store']
        store.reset_filters()
        return web.json_response(store.state.filters.to_dict())

    @staticmethod
    async def update_dashboard_filters(request):
        """
        PUT /api/dashboard-filters
        """
        try:
            store = request['store']
            store.update_dashboard_filters(await read_json(request))
            return web.json_response(store.state.dashboard_filters.to_dict())

        except ValueError as e:
            return error_response(str(e), 400)

    @staticmethod
    async def reset_dashboard_filters(request):
        """
        DELETE /api/dashboard-filters
        """
        store = request['store']
        store.reset_dashboard_filters()
        return web.json_response(store.state.dashboard_filters.to_dict())

    # ==================== STATISTICS ====================

    @staticmethod
    async def get_dashboard_summary(request):
        """
        GET /api/stats/dashboard
        KPIs and chart series for the dashboard filters
        """
        try:
            state = request['store'].state
            period = state.dashboard_filters.period

            filtered = dashboard_transactions(state.transactions, state.dashboard_filters)
            kpis = calculate_kpis(filtered, period)

            top_category_name = None
            if kpis.top_category_id is not None:
                top_category_name = category_name(kpis.top_category_id, state.categories)

            return web.json_response({
                'filters': state.dashboard_filters.to_dict(),
                'kpis': kpis.to_dict(),
                'topCategoryName': top_category_name,
                'daily': to_json(daily_chart_data(filtered, period)),
                'categories': to_json(category_chart_data(filtered, state.categories)),
                'upcomingReminders': [r.to_dict() for r in upcoming_reminders(state.reminders)],
                'goals': [{'id': g.id, 'title': g.title, 'progress': goal_progress(g)} for g in state.goals]
            })

        except Exception as e:
            logger.error(f"Get dashboard summary error: {e}", exc_info=True)
            return error_response(str(e), 500)

    @staticmethod
    async def get_comparison(request):
        """
        GET /api/stats/comparison
        Current vs previous month
        """
        try:
            state = request['store'].state
            return web.json_response(to_json(monthly_comparison(state.transactions, state.categories)))

        except Exception as e:
            logger.error(f"Get comparison error: {e}", exc_info=True)
            return error_response(str(e), 500)

    @staticmethod
    async def get_reminder_stats(request):
        """
        GET /api/stats/reminders
        """
        state = request['store'].state
        return web.json_response(reminder_stats(state.reminders))

    # ==================== ACCOUNT ====================

    @staticmethod
    async def reset_data(request):
        """
        POST /api/reset
        Delete all data of the current identity
        """
        store = request['store']
        await store.reset_data()
        return web.json_response({'message': 'Data reset', 'state': store.state.to_dict()})

    @staticmethod
    async def delete_account(request):
        """
        DELETE /api/account
        Clear local cache and fall back to anonymous mode
        """
        store = request['store']
        registry = request.app[REGISTRY_KEY]
        user_id = store.user_id

        await store.delete_account()

        # Both cleared blobs must be reloaded by the next request
        registry.discard(user_id)
        registry.discard(None)

        return web.json_response({'message': 'Local data cleared', 'userId': store.user_id})


def setup_api_routes(app):
    """
    Setup API routes
    """
    app.middlewares.append(identity_middleware)

    app.router.add_get('/api/state', APIHandler.get_state)

    # Records (filtered) listing
    app.router.add_get('/api/transactions', APIHandler.get_transactions)

    # Statistics
    app.router.add_get('/api/stats/dashboard', APIHandler.get_dashboard_summary)
    app.router.add_get('/api/stats/comparison', APIHandler.get_comparison)
    app.router.add_get('/api/stats/reminders', APIHandler.get_reminder_stats)

    # Plan & filters
    app.router.add_put('/api/plan', APIHandler.set_plan)
    app.router.add_put('/api/filters', APIHandler.update_filters)
    app.router.add_delete('/api/filters', APIHandler.reset_filters)
    app.router.add_put('/api/dashboard-filters', APIHandler.update_dashboard_filters)
    app.router.add_delete('/api/dashboard-filters', APIHandler.reset_dashboard_filters)

    # Account
    app.router.add_post('/api/reset', APIHandler.reset_data)
    app.router.add_delete('/api/account', APIHandler.delete_account)

    # Entity CRUD
    collections = '|'.join(ENTITY_ROUTES)
    app.router.add_get('/api/{collection:categories|reminders|goals}', APIHandler.list_entities)
    app.router.add_post(f'/api/{{collection:{collections}}}', APIHandler.create_entity)
    app.router.add_put(f'/api/{{collection:{collections}}}/{{id}}', APIHandler.update_entity)
    app.router.add_delete(f'/api/{{collection:{collections}}}/{{id}}', APIHandler.delete_entity)

    logger.info("API routes configured")
