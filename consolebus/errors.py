class ConsoleBusError(Exception):
    """Base error for consolebus."""


class PayloadError(ConsoleBusError):
    """Raised when a typed event payload does not match its model."""


class UnknownEventError(ConsoleBusError):
    pass


class ConfigError(ConsoleBusError):
    """Raised when settings cannot be loaded from the environment."""
