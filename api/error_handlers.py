import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.exceptions.currency import CacheError, InvalidAmountError, InvalidCurrencyError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(InvalidCurrencyError)
	async def invalid_currency_handler(request: Request, exc: InvalidCurrencyError):
		return JSONResponse(status_code=400, content={'detail': str(exc)})

	@app.exception_handler(InvalidAmountError)
	async def invalid_amount_handler(request: Request, exc: InvalidAmountError):
		return JSONResponse(status_code=400, content={'detail': str(exc)})

	@app.exception_handler(CacheError)
	async def cache_error_handler(request: Request, exc: CacheError):
		logger.error(f'Cache error: {exc}')
		return JSONResponse(status_code=503, content={'detail': 'Exchange rate cache unavailable'})
