import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.error_handlers import register_exception_handlers
from api.routes import currency
from config.settings import get_settings
from infrastructure.cache.rate_cache import get_rate_cache
from infrastructure.monitoring.logger import setup_logging

logger = logging.getLogger(__name__)


settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
	setup_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON, log_file=settings.LOG_FILE)
	logger.info('Starting Anchored Currency API...')

	cache = get_rate_cache()
	# Warm the cache in the background; readers never wait for it
	cache.schedule_refresh()
	logger.info(f'Tracking {len(cache.currencies)} currencies via {cache.fetcher.name}')

	yield

	logger.info('Shutting down...')
	cache.close(wait=False)


app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
	logger.error(f'Unhandled exception: {exc}', exc_info=True)
	return JSONResponse(status_code=500, content={'detail': 'Internal server error'})


app.include_router(currency.router)
register_exception_handlers(app)
