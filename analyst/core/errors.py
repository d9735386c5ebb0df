"""Exception hierarchy shared by the extractor, cache, LLM client and session."""


class AnalystError(Exception):
    pass


class ConfigurationError(AnalystError):
    pass


class DatabaseConnectionError(AnalystError):
    pass


class SchemaExtractionError(AnalystError):
    pass


class CacheError(AnalystError):
    pass


class LLMError(AnalystError):
    pass


class QueryExecutionError(AnalystError):
    pass
