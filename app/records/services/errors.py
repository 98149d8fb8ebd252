"""Service layer exceptions shared by every service."""


class ServiceError(Exception):
    """General exception class for the service layer."""
    pass

class InvalidInputError(ServiceError):
    """A required field is missing or malformed."""
    pass

class NotFoundError(ServiceError):
    """A referenced entity does not exist."""
    pass

class ConflictError(ServiceError):
    """The write would violate a uniqueness rule (duplicate enrollment, class code, email)."""
    pass

class AuthenticationError(ServiceError):
    """No authenticated subject is attached to the request."""
    pass

class AuthorizationError(ServiceError):
    """The subject's role is not allowed to perform the operation."""
    pass

class StoreError(ServiceError):
    """The store failed (connectivity, transaction abort). Details go to the server log only."""
    pass

class BatchWriteError(StoreError):
    """A batch write was rolled back as a whole because one of its statements failed."""
    pass
