class SupplyError(Exception):
    pass


class DataSourceError(SupplyError):
    pass


class NotFoundError(DataSourceError):
    pass


class RateLimitError(DataSourceError):
    pass


class DecodeError(SupplyError):
    pass


class UnsupportedTokenTypeError(DecodeError):
    pass


class InvalidTokenIdError(SupplyError):
    pass
