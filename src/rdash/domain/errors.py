class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class InsufficientStockError(AppError):
    pass


class InsufficientFundsError(AppError):
    pass


class StoreError(AppError):
    """The data store rejected an operation or could not be reached."""


class RemoteError(StoreError):
    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class ConflictError(StoreError):
    """A conditional update kept losing against concurrent writers."""


class AuthenticationError(AppError):
    pass
