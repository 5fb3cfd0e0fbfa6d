from infrastructure.cache.rate_cache import ExchangeRateCache, get_rate_cache


def get_cache() -> ExchangeRateCache:
	return get_rate_cache()
