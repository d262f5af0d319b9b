# datasources/exceptions.py

class DataSourceError(Exception):
    pass


class DataSourceUnavailable(DataSourceError):
    pass


class QueryTimeout(DataSourceError):
    pass


class InvalidQuery(DataSourceError):
    """Raised when the backend rejects a query, e.g. one that needs a missing index."""


class AlertPersistenceError(DataSourceError):
    pass


class ResourceNotFound(DataSourceError):
    pass


class SampleUnavailable(DataSourceError):
    """Raised when neither the indexed query nor the scan produced a metric value."""
