class ValidationError(Exception):
    pass


class PreconditionError(Exception):
    pass


class AutodetectError(PreconditionError):
    pass


class SetupCancelled(Exception):
    pass
