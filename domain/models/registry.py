from collections.abc import Iterable, Mapping
from types import MappingProxyType

from domain.exceptions.currency import InvalidCurrencyError
from domain.models.currency import CurrencyDescriptor

REFERENCE_CODE = 'USD'

_TABLE: tuple[tuple[str, str, str | None], ...] = (
	# Common
	('AUD', 'Australian Dollar', '$'),
	('GBP', 'British Pound', '£'),
	('EUR', 'Euro', '€'),
	('JPY', 'Japanese Yen', '¥'),
	('CHF', 'Swiss Franc', None),
	('CAD', 'Canadian Dollar', '$'),
	('USD', 'US Dollar', '$'),
	# Precious metals (per troy ounce)
	('XAU', 'Gold Ounce', 'Au'),
	('XAG', 'Silver Ounce', 'Ag'),
	('XPT', 'Platinum Ounce', 'Pt'),
	('XPD', 'Palladium Ounce', 'Pd'),
	# Less common
	('AFN', 'Afghanistan Afghani', '؋'),
	('ALL', 'Albanian Lek', 'L'),
	('DZD', 'Algerian Dinar', 'دج'),
	('AOA', 'Angolan Kwanza', 'Kz'),
	('ARS', 'Argentine Peso', '$'),
	('AMD', 'Armenian Dram', None),
	('AWG', 'Aruban Florin', 'ƒ'),
	('AZN', 'Azerbaijan New Manat', '₼'),
	('BSD', 'Bahamian Dollar', '$'),
	('BHD', 'Bahraini Dinar', '$'),
	('BDT', 'Bangladeshi Taka', '৳'),
	('BBD', 'Barbados Dollar', '$'),
	('BYR', 'Belarusian Ruble', 'Br'),
	('BZD', 'Belize Dollar', 'BZ$'),
	('BMD', 'Bermudian Dollar', '$'),
	('BTN', 'Bhutan Ngultrum', 'Nu.'),
	('BOB', 'Bolivian Boliviano', 'Bs.'),
	('BAM', 'Bosnian Mark', 'KM'),
	('BWP', 'Botswana Pula', 'P'),
	('BRL', 'Brazilian Real', 'R$'),
	('BND', 'Brunei Dollar', 'B$'),
	('BGN', 'Bulgarian Lev', 'лв.'),
	('BIF', 'Burundi Franc', 'FBu'),
	('XOF', 'CFA Franc BCEAO', 'CFA'),
	('XAF', 'CFA Franc BEAC', 'FCFA'),
	('XPF', 'CFP Franc', 'F'),
	('KHR', 'Cambodian Riel', '៛'),
	('CVE', 'Cape Verde Escudo', 'Esc'),
	('KYD', 'Cayman Islands Dollar', '$'),
	('CLP', 'Chilean Peso', '$'),
	('CNY', 'Chinese Yuan/Renminbi', '¥'),
	('COP', 'Colombian Peso', '$'),
	('KMF', 'Comoros Franc', 'CF'),
	('CDF', 'Congolese Franc', 'FC'),
	('CRC', 'Costa Rican Colon', '₡'),
	('HRK', 'Croatian Kuna', 'kn'),
	('CUC', 'Cuban Convertible Peso', 'CUC'),
	('CUP', 'Cuban Peso', '$MN'),
	('CYP', 'Cyprus Pound', '£'),
	('CZK', 'Czech Koruna', 'Kč'),
	('DKK', 'Danish Krone', 'kr.'),
	('DJF', 'Djibouti Franc', 'Fdj'),
	('DOP', 'Dominican Peso', 'RD$'),
	('XCD', 'East Caribbean Dollar', '$'),
	('EGP', 'Egyptian Pound', 'ج.م'),
	('SVC', 'El Salvador Colon', '₡'),
	('ETB', 'Ethiopian Birr', 'ብር'),
	('FKP', 'Falkland Islands Pound', '£'),
	('FJD', 'Fiji Dollar', 'FJ$'),
	('GMD', 'Gambian Dalasi', 'D'),
	('GEL', 'Georgian Lari', '₾'),
	('GHS', 'Ghanaian New Cedi', 'GH₵'),
	('GIP', 'Gibraltar Pound', '£'),
	('GTQ', 'Guatemalan Quetzal', 'Q'),
	('GNF', 'Guinea Franc', 'FG'),
	('GYD', 'Guyanese Dollar', 'G$'),
	('HTG', 'Haitian Gourde', 'G'),
	('HNL', 'Honduran Lempira', 'L'),
	('HKD', 'Hong Kong Dollar', 'HK$'),
	('HUF', 'Hungarian Forint', 'Ft'),
	('ISK', 'Iceland Krona', 'kr'),
	('INR', 'Indian Rupee', '₹'),
	('IDR', 'Indonesian Rupiah', 'Rp'),
	('IRR', 'Iranian Rial', '﷼'),
	('IQD', 'Iraqi Dinar', 'ع.د'),
	('ILS', 'Israeli New Shekel', '₪'),
	('JMD', 'Jamaican Dollar', '$'),
	('JOD', 'Jordanian Dinar', 'JOD'),
	('KZT', 'Kazakhstan Tenge', '₸'),
	('KES', 'Kenyan Shilling', 'KSh'),
	('KWD', 'Kuwaiti Dinar', 'د.ك'),
	('KGS', 'Kyrgyzstani Som', 'сом'),
	('LAK', 'Lao Kip', '₭'),
	('LVL', 'Latvian Lats', 'Ls'),
	('LBP', 'Lebanese Pound', 'ل.ل'),
	('LSL', 'Lesotho Loti', 'L'),
	('LRD', 'Liberian Dollar', 'L$'),
	('LYD', 'Libyan Dinar', 'ل.د'),
	('LTL', 'Lithuanian Litas', 'Lt'),
	('MOP', 'Macau Pataca', 'MOP$'),
	('MKD', 'Macedonian Denar', 'ден'),
	('MGA', 'Malagasy Ariary', None),
	('MWK', 'Malawi Kwacha', 'MK'),
	('MYR', 'Malaysian Ringgit', 'RM'),
	('MVR', 'Maldive Rufiyaa', 'ރ'),
	('MRO', 'Mauritanian Ouguiya', 'UM'),
	('MUR', 'Mauritius Rupee', 'Rs'),
	('MXN', 'Mexican Peso', 'Mex$'),
	('MDL', 'Moldovan Leu', None),
	('MNT', 'Mongolian Tugrik', '₮'),
	('MAD', 'Moroccan Dirham', 'MAD'),
	('MZN', 'Mozambique New Metical', 'MT'),
	('MMK', 'Myanmar Kyat', 'K'),
	('ANG', 'Netherlands Antillian Guilder', 'ƒ'),
	('NAD', 'Namibia Dollar', 'N$'),
	('NPR', 'Nepalese Rupee', 'रू'),
	('NZD', 'New Zealand Dollar', '$'),
	('NIO', 'Nicaraguan Cordoba Oro', 'C$'),
	('NGN', 'Nigerian Naira', '₦'),
	('KPW', 'North Korean Won', '₩'),
	('NOK', 'Norwegian Kroner', 'kr'),
	('OMR', 'Omani Rial', 'ر.ع.'),
	('PKR', 'Pakistan Rupee', 'Rs'),
	('PAB', 'Panamanian Balboa', 'B/.'),
	('PGK', 'Papua New Guinea Kina', 'K'),
	('PYG', 'Paraguay Guarani', '₲'),
	('PEN', 'Peruvian Nuevo Sol', 'S/'),
	('PHP', 'Philippine Peso', '₱'),
	('PLN', 'Polish Zloty', 'zł'),
	('QAR', 'Qatari Rial', 'ر.ق'),
	('RON', 'Romanian New Lei', None),
	('RUB', 'Russian Rouble', '₽'),
	('RWF', 'Rwandan Franc', 'FRw'),
	('WST', 'Samoan Tala', 'WS$'),
	('STD', 'Sao Tome/Principe Dobra', 'Db'),
	('SAR', 'Saudi Riyal', 'ر.س'),
	('RSD', 'Serbian Dinar', 'РСД'),
	('SCR', 'Seychelles Rupee', 'SR'),
	('SLL', 'Sierra Leonean Leone', 'Le'),
	('SGD', 'Singapore Dollar', 'S$'),
	('SIT', 'Slovenian Tolar', '€'),
	('SBD', 'Solomon Islands Dollar', 'SI$'),
	('SOS', 'Somali Shilling', 'Sh.So.'),
	('ZAR', 'South African Rand', 'R'),
	('KRW', 'South Korean Won', '₩'),
	('LKR', 'Sri Lanka Rupee', 'රු'),
	('SHP', 'St Helena Pound', '£'),
	('SDG', 'Sudanese Pound', 'ج.س.'),
	('SRD', 'Suriname Dollar', '$'),
	('SZL', 'Swaziland Lilangeni', 'L'),
	('SEK', 'Swedish Krona', 'kr'),
	('SYP', 'Syrian Pound', '£S'),
	('TWD', 'Taiwan New Dollar', 'NT$'),
	('TZS', 'Tanzanian Shilling', 'TSh'),
	('THB', 'Thai Baht', '฿'),
	('TOP', "Tonga Pa'anga", 'T$'),
	('TTD', 'Trinidad/Tobago Dollar', 'TT$'),
	('TND', 'Tunisian Dinar', 'د.ت'),
	('TRY', 'Turkish New Lira', 'YTL'),
	('UGX', 'Uganda Shilling', 'USh'),
	('UAH', 'Ukraine Hryvnia', '₴'),
	('UYU', 'Uruguayan Peso', '$U'),
	('AED', 'United Arab Emirates Dirham', 'د.إ'),
	('VUV', 'Vanuatu Vatu', 'VT'),
	('VND', 'Vietnamese Dong', '₫'),
	('UZS', 'Uzbekistan Som', 'som'),
	('YER', 'Yemeni Rial', '﷼'),
)


def build_registry(
	table: Iterable[tuple[str, str, str | None]],
) -> Mapping[str, CurrencyDescriptor]:
	registry = {}
	for code, name, symbol in table:
		if code in registry:
			raise ValueError(f'Duplicate currency code {code}')
		registry[code] = CurrencyDescriptor(code=code, name=name, symbol=symbol)
	return MappingProxyType(registry)


CURRENCIES = build_registry(_TABLE)

REFERENCE_CURRENCY = CURRENCIES[REFERENCE_CODE]


def get_currency(currency: str | CurrencyDescriptor) -> CurrencyDescriptor:
	"""Resolve a currency code (any case) or descriptor to its registered descriptor."""
	if isinstance(currency, CurrencyDescriptor):
		return currency
	if not isinstance(currency, str):
		raise InvalidCurrencyError(f'Currency code must be a string, got {type(currency).__name__}')

	descriptor = CURRENCIES.get(currency.strip().upper())
	if descriptor is None:
		raise InvalidCurrencyError(f'Currency {currency} is not supported')
	return descriptor
