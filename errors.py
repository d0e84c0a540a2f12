GENERIC_MESSAGE = "An unexpected error occurred."


class AdeliaError(Exception):
    status = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    @property
    def public_message(self):
        """ what the poster gets to see """
        return self.message


class ValidationError(AdeliaError):
    """ bad or missing input; the user can fix it and nothing was written """
    status = 400


class Forbidden(ValidationError):
    status = 403


class ThreadNotFound(ValidationError):
    status = 404

    def __init__(self, thread_id):
        super().__init__('Thread %s does not exist' % (thread_id,))
        self.thread_id = thread_id


class RateLimited(ValidationError):
    status = 429


class BadMedia(ValidationError):
    """ upload rejected; no files are left behind """
    status = 415


class FileTooLarge(BadMedia):
    status = 413


class UnsupportedType(BadMedia):
    pass


class DecodeFailure(BadMedia):
    pass


class ResampleFailure(DecodeFailure):
    pass


class ServerFault(AdeliaError):
    """ infrastructure trouble. Logged in full, shown to nobody. """
    status = 500

    @property
    def public_message(self):
        return GENERIC_MESSAGE


class StorageFailure(ServerFault):
    pass


class PersistenceError(ServerFault):
    pass
