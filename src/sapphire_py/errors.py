from __future__ import annotations


class SapphirePyError(Exception):
    pass


class TypeNotFoundError(SapphirePyError):
    pass


class MissingMappingError(SapphirePyError):
    pass


class UntypedFieldError(SapphirePyError):
    pass


class CastError(SapphirePyError):
    pass


class NoMappedFieldsError(SapphirePyError):
    pass


class InvalidInputError(SapphirePyError):
    pass


class ValidationError(SapphirePyError):
    pass


class ConditionFailedError(SapphirePyError):
    pass


class NotFoundError(SapphirePyError):
    pass


class BatchRetryExceededError(SapphirePyError):
    def __init__(self, *, operation: str, unprocessed_count: int) -> None:
        super().__init__(f"{operation}: retry limit exceeded (unprocessed={unprocessed_count})")
        self.operation = operation
        self.unprocessed_count = unprocessed_count


class AwsError(SapphirePyError):
    def __init__(self, *, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
