"""
Web server main entry point
"""

import asyncio
import logging
from typing import Optional

from aiohttp import web

from api_handlers import REGISTRY_KEY, setup_api_routes
from database.collections import RemoteStore
from database.connection import init_database, close_database, is_initialized, run_migrations
from database.local_store import LocalStore
from shared.config import settings, validate_config
from shared.logger import setup_logging
from store import StoreRegistry

logger = logging.getLogger(__name__)


async def health_check(request):
    registry = request.app[REGISTRY_KEY]
    return web.json_response({
        'status': 'ok',
        'persistence': 'remote' if registry.remote is not None else 'local-only',
        'sessions': len(registry),
        'environment': settings.ENVIRONMENT
    })


def create_app(registry: StoreRegistry) -> web.Application:
    """
    Build the aiohttp application around the state containers

    Args:
        registry: One state container per identity

    Returns:
        aiohttp web application
    """
    app = web.Application()
    app[REGISTRY_KEY] = registry

    app.router.add_get('/health', health_check)
    setup_api_routes(app)

    return app


async def init_app() -> StoreRegistry:
    """
    Initialize storage backends and the state container
    """
    try:
        logger.info("=" * 60)
        logger.info("Finance Tracker Starting...")
        logger.info("=" * 60)

        logger.info("Validating configuration...")
        validate_config()
        logger.info("✓ Configuration valid")

        remote: Optional[RemoteStore] = None
        if settings.remote_enabled:
            logger.info("Initializing database...")
            await init_database()
            await run_migrations()
            remote = RemoteStore.from_pool()
            logger.info("✓ Database initialized")
        else:
            logger.info("No DATABASE_URL, all sessions stay local")

        registry = StoreRegistry(LocalStore(), remote)

        logger.info("=" * 60)
        logger.info("Initialization completed successfully!")
        logger.info("=" * 60)

        return registry

    except Exception as e:
        logger.error(f"Initialization failed: {e}", exc_info=True)
        raise


async def main():
    """
    Start the web server
    """
    runner = None

    try:
        registry = await init_app()
        app = create_app(registry)

        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, settings.API_HOST, settings.API_PORT)
        await site.start()

        logger.info(f"✅ Server started on http://{settings.API_HOST}:{settings.API_PORT}")
        logger.info(f"✅ API endpoint: /api/")
        logger.info(f"✅ Health check: /health")

        # Keep running
        await asyncio.Event().wait()

    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")
    finally:
        logger.info("Cleaning up...")
        try:
            if runner is not None:
                await runner.cleanup()
            if is_initialized():
                await close_database()
            logger.info("Cleanup completed")
        except Exception as e:
            logger.error(f"Cleanup error: {e}", exc_info=True)


def run():
    """Console entry point"""
    setup_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Application stopped by user")
    except Exception as e:
        logger.error(f"Application crashed: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    run()
