"""Custom Exceptions for the AzSub application."""

class AzSubError(Exception):
    """Base class for exceptions in this module."""
    pass

class ConfigError(AzSubError):
    """Exception raised for missing or invalid configuration."""
    pass

class AudioExtractionError(AzSubError):
    """Exception raised for errors during audio extraction."""
    pass

class TranscriptionError(AzSubError):
    """Exception raised for errors during speech recognition."""
    pass

class RecognitionTimeout(TranscriptionError):
    """Raised when the recognizer stops delivering events before the session ends."""
    pass

class RecognitionCanceled(AzSubError):
    """Raised when the recognition service canceled the session with an error."""

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        message = f"Recognition canceled: {reason}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)

class TranslationError(AzSubError):
    """Exception raised for errors during translation."""
    pass

class NetworkError(AzSubError):
    """Exception raised when a remote service cannot be reached or answers with an error."""
    pass

class AlignmentError(AzSubError):
    """Exception raised when translated texts do not line up with the source cues."""
    pass

class FormatError(AzSubError):
    """Exception raised for malformed subtitle text."""

    def __init__(self, message: str, line_number: int = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)

class FileSystemError(AzSubError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass
