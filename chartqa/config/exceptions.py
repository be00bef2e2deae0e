class ConfigurationError(Exception):
    """Raised when required credentials or endpoints are missing or invalid."""
