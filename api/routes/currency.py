from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from api.dependencies import get_cache
from api.schemas import (
	ConversionResponse,
	CurrencyStatusResponse,
	ExchangeRateResponse,
	HealthResponse,
	SupportedCurrenciesResponse,
)
from domain.models.money import CurrencyValue
from infrastructure.cache.rate_cache import ExchangeRateCache

router = APIRouter(prefix='/api', tags=['currency'])

CurrencyCode = Annotated[str, Path(min_length=3, max_length=3)]

# Handlers are plain functions: a rate read may block on a point-fetch,
# so they run in FastAPI's threadpool.


@router.get(
	'/convert/{from_currency}/{to_currency}/{amount}',
	response_model=ConversionResponse,
	status_code=status.HTTP_200_OK,
	summary='Convert currency amount',
)
def convert_currency(
	from_currency: CurrencyCode,
	to_currency: CurrencyCode,
	amount: Annotated[Decimal, Path()],
	cache: Annotated[ExchangeRateCache, Depends(get_cache)],
) -> ConversionResponse:
	original = CurrencyValue.of(from_currency, amount, rates=cache)
	converted = original.convert(to_currency)

	return ConversionResponse(
		from_currency=original.code,
		to_currency=converted.code,
		original_amount=original.amount,
		converted_amount=converted.amount,
		display=converted.display(),
		display_unrounded=converted.display_unrounded(),
		display_full=converted.display_full(),
		is_valid=cache.is_usable(original.code) and cache.is_usable(converted.code),
	)


@router.get(
	'/rate/{from_currency}/{to_currency}',
	response_model=ExchangeRateResponse,
	status_code=status.HTTP_200_OK,
	summary='Get current exchange rate',
)
def get_exchange_rate(
	from_currency: CurrencyCode,
	to_currency: CurrencyCode,
	cache: Annotated[ExchangeRateCache, Depends(get_cache)],
) -> ExchangeRateResponse:
	from_currency = from_currency.upper()
	to_currency = to_currency.upper()

	rate = cache.get_rate(from_currency, relative_to=to_currency)
	return ExchangeRateResponse(
		from_currency=from_currency,
		to_currency=to_currency,
		rate=rate,
		is_valid=cache.is_usable(from_currency) and cache.is_usable(to_currency),
		is_refreshing=cache.is_refreshing(),
	)


@router.get(
	'/currencies',
	response_model=SupportedCurrenciesResponse,
	status_code=status.HTTP_200_OK,
	summary='List tracked currencies and their cached rates',
)
def get_supported_currencies(
	cache: Annotated[ExchangeRateCache, Depends(get_cache)],
) -> SupportedCurrenciesResponse:
	entries = {entry.code: entry for entry in cache.entries()}
	currencies = [
		CurrencyStatusResponse(
			code=descriptor.code,
			name=descriptor.name,
			symbol=descriptor.symbol,
			rate=entries[descriptor.code].rate,
			is_valid=entries[descriptor.code].is_valid,
			outcome=entries[descriptor.code].outcome.value,
			updated_at=entries[descriptor.code].updated_at,
		)
		for descriptor in cache.currencies
	]
	return SupportedCurrenciesResponse(currencies=currencies)


@router.get('/health', response_model=HealthResponse, summary='Rate cache status')
def health(
	cache: Annotated[ExchangeRateCache, Depends(get_cache)],
) -> HealthResponse:
	invalid = sorted(entry.code for entry in cache.entries() if not entry.is_valid)
	return HealthResponse(
		status='degraded' if invalid else 'healthy',
		refresh_cycle=cache.cycle,
		is_refreshing=cache.is_refreshing(),
		seconds_until_refresh=round(cache.seconds_until_refresh(), 3),
		invalid_currencies=invalid,
	)
