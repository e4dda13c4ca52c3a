class NoteboxError(ValueError):
    pass


class ValidationError(NoteboxError):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(NoteboxError):
    pass


class ConflictError(NoteboxError):
    pass


class DecryptionError(NoteboxError):
    pass


class InternalError(NoteboxError):
    pass
