from config.settings import Settings

from .base import RateFetcher
from .quotes import QuoteServiceProvider
from .static import StaticRateProvider

__all__ = ['RateFetcher', 'QuoteServiceProvider', 'StaticRateProvider', 'create_rate_fetcher']


def create_rate_fetcher(settings: Settings) -> RateFetcher:
	provider = settings.RATE_PROVIDER.lower()

	if provider == 'quotes':
		return QuoteServiceProvider(
			base_url=settings.QUOTE_SERVICE_URL,
			timeout=settings.QUOTE_TIMEOUT_SECONDS,
			retry_attempts=settings.QUOTE_RETRY_ATTEMPTS,
		)
	if provider == 'static':
		return StaticRateProvider(settings.STATIC_RATES)

	raise ValueError(f'Unknown rate provider: {settings.RATE_PROVIDER}')
