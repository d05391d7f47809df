from .exceptions import AutodetectError, PreconditionError, SetupCancelled, ValidationError
from .hibernate_setup import HibernateSetup

__all__ = ["HibernateSetup", "AutodetectError", "PreconditionError", "SetupCancelled", "ValidationError"]
