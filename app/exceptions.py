class ConfigurationError(RuntimeError):
    """Raised when the service is missing settings it cannot run without."""
