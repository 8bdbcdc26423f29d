# somnia_auto/errors.py

class StartupError(RuntimeError):
    """Aborts the whole run before any wallet is processed."""

class KeyFileError(StartupError):
    pass

class ChainConnectionError(StartupError):
    pass
