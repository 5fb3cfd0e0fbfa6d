from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CurrencyStatusResponse(BaseModel):
	code: str = Field(..., description='Currency code')
	name: str = Field(..., description='Display name')
	symbol: str = Field(..., description='Symbol, or the code when the currency has none')
	rate: float = Field(..., description='Cached rate in USD units')
	is_valid: bool = Field(..., description='False once the quote service stops quoting it')
	outcome: str = Field(..., description='Outcome of the last refresh attempt')
	updated_at: datetime | None = Field(None, description='When the rate was last fetched')


class SupportedCurrenciesResponse(BaseModel):
	currencies: list[CurrencyStatusResponse]


class ExchangeRateResponse(BaseModel):
	from_currency: str = Field(..., description='Source currency code')
	to_currency: str = Field(..., description='Target currency code')
	rate: float = Field(..., description='Units of target currency per unit of source currency')
	is_valid: bool = Field(..., description='Both currencies have a usable quote')
	is_refreshing: bool = Field(..., description='A rate sweep is in progress')

	class ConfigDict:
		json_schema_extra = {
			'example': {
				'from_currency': 'USD',
				'to_currency': 'EUR',
				'rate': 0.908,
				'is_valid': True,
				'is_refreshing': False,
			}
		}


class ConversionResponse(BaseModel):
	from_currency: str = Field(..., description='Source currency code')
	to_currency: str = Field(..., description='Target currency code')
	original_amount: Decimal = Field(..., description='Amount requested, at 9 decimal places')
	converted_amount: Decimal = Field(..., description='Converted amount, at 9 decimal places')
	display: str = Field(..., description='Short display form')
	display_unrounded: str = Field(..., description='Display form at full precision')
	display_full: str = Field(..., description='Display form with the currency name')
	is_valid: bool = Field(..., description='Both currencies have a usable quote')

	class ConfigDict:
		json_schema_extra = {
			'example': {
				'from_currency': 'USD',
				'to_currency': 'EUR',
				'original_amount': '5.000000000',
				'converted_amount': '4.540000000',
				'display': '€4.54',
				'display_unrounded': '€4.540000000',
				'display_full': 'Euro (EUR) = €4.540000000',
				'is_valid': True,
			}
		}


class HealthResponse(BaseModel):
	status: str
	refresh_cycle: int = Field(..., description='Number of rate sweeps started')
	is_refreshing: bool
	seconds_until_refresh: float
	invalid_currencies: list[str]
