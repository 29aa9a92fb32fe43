class DexStatsError(Exception):
    pass


class DataSourceError(DexStatsError):
    pass


class RateLimitError(DataSourceError):
    pass


class FactoryUnavailableError(DataSourceError):
    pass


class ConfigurationError(DexStatsError):
    pass


class UnsupportedChainError(ConfigurationError):
    pass
