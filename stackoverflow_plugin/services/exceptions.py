"""Domain-specific exceptions."""


class PluginError(Exception):
    pass


class ConfigurationError(PluginError):
    pass


class SearchFailed(PluginError):
    """Raised when the search API call fails for any reason (transport, status, decode)."""


class ProtocolError(PluginError):
    pass
