class FleetError(Exception):
    """Base error for player check-in handling."""


class RecoverableError(FleetError):
    """The whole check-in can be retried safely."""


class PermanentError(FleetError):
    """Retrying the check-in will not help."""


class DescriptorRejectedError(PermanentError):
    """The user agent did not match any known player signature."""


class IdentityIntegrityError(PermanentError):
    """A fixed player slot is held by a different uuid; needs an operator."""


class StoreUnavailableError(RecoverableError):
    """The player store could not be reached or failed mid-operation."""
