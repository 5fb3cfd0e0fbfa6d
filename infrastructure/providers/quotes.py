import logging
from decimal import Decimal, InvalidOperation

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from domain.exceptions.currency import HostUnreachableError, MalformedQuoteError, ProviderError
from domain.models.registry import REFERENCE_CODE

logger = logging.getLogger(__name__)


class QuoteServiceProvider:
	"""Single-quote CSV endpoint: one request per currency, body is one decimal literal."""

	BASE_URL = 'http://download.finance.yahoo.com/d/quotes.csv'
	SYMBOL_SUFFIX = '=X'

	def __init__(
		self,
		base_url: str | None = None,
		client: httpx.Client | None = None,
		timeout: float = 10,
		retry_attempts: int = 3,
		retry_wait: wait_base | None = None,
	):
		self.base_url = (base_url or self.BASE_URL).rstrip('/')
		self._client = client or httpx.Client(timeout=timeout)
		self._retrying = Retrying(
			stop=stop_after_attempt(retry_attempts),
			wait=retry_wait or wait_exponential(multiplier=1, min=1, max=10),
			retry=retry_if_exception_type(httpx.TimeoutException),
			reraise=True,
		)

	@property
	def name(self) -> str:
		return 'quotes'

	def symbol_for(self, code: str) -> str:
		return f'{code}{REFERENCE_CODE}{self.SYMBOL_SUFFIX}'

	def _request(self, params: dict) -> str:
		try:
			response = self._retrying.copy()(self._client.get, self.base_url, params=params)
			response.raise_for_status()
			return response.text

		except httpx.ConnectError as e:
			raise HostUnreachableError(
				f'Quote service at {self.base_url} could not be reached: {e.__class__.__name__}'
			) from e
		except httpx.HTTPStatusError as e:
			raise ProviderError(
				f'Quote service HTTP error {e.response.status_code}: {e.response.text[:200]}'
			) from e
		except httpx.RequestError as e:
			raise ProviderError(f'Quote service request failed: {e.__class__.__name__}') from e

	def fetch_rate(self, code: str) -> float:
		symbol = self.symbol_for(code)
		body = self._request({'s': symbol, 'f': 'l1', 'e': '.csv'}).strip()

		try:
			rate = Decimal(body)
		except InvalidOperation as e:
			raise MalformedQuoteError(f'Unparseable quote for {symbol}: {body[:50]!r}') from e

		if not rate.is_finite() or rate < 0:
			raise MalformedQuoteError(f'Unusable quote for {symbol}: {body[:50]!r}')

		logger.debug(f'Fetched {symbol} = {rate}')
		return float(rate)

	def close(self) -> None:
		self._client.close()
