class TranslationError(Exception):
    """Base class for failures that abort a document translation"""
    pass


class MalformedDocumentError(TranslationError):
    """The input could not be parsed as a Word document"""
    pass


class RateLimitExceededError(TranslationError):
    """The service kept answering 429 after all retries were used"""

    def __init__(self, retries, message=None):
        self.retries = retries
        super().__init__(message or f"Too many requests after {retries} retries. Please try again later.")


class TranslationServiceError(TranslationError):
    """The service answered with a non-success status or could not be reached"""

    def __init__(self, status_code, message=None):
        self.status_code = status_code
        if message is None:
            message = f"Translation service returned HTTP {status_code}"
        super().__init__(message)


class TranslationTimeoutError(TranslationError, TimeoutError):
    """The per-document deadline expired before translation finished"""
    pass


class StopTranslationException(TranslationError):
    """Raised inside workers once the run has been asked to stop"""
    pass
