"""Core exceptions."""


class StorageError(Exception):
    """
    A storage-engine failure, wrapped with the operation that hit it.

    The only error kind raised by the repositories and the merge engine.
    "Not found" is never reported through it.

    Attributes:
        operation: Name of the repository operation that failed
        cause: Underlying exception raised by the database layer
    """

    def __init__(self, operation: str, cause: BaseException) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"Storage operation '{operation}' failed: {cause}")
