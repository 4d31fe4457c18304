# Exceptions raised by the production chain.
# Generation failures and end-of-input are *not* exceptions, they are
# outcomes handled by the loop itself (see generation.py).

class JetGunError(Exception):
    pass

class StartupError(JetGunError):
    """
    Anything that goes wrong before the first event is attempted.
    These stop the program with a non-zero exit code.
    """
    pass

class ConfigurationError(StartupError):
    pass

class GeneratorInitializationError(StartupError):
    pass

class PersistenceError(JetGunError):
    """
    Failure to write to the output store. Never retried.
    """
    pass
