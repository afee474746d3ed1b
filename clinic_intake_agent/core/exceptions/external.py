"""
External API-related exceptions.
"""


class ExternalAPIError(Exception):
    """Base exception for external API errors."""
    pass


class WhatsAppAPIError(ExternalAPIError):
    """Exception raised when Z-API calls fail."""
    pass


class CRMAPIError(ExternalAPIError):
    """Exception raised when GoHighLevel calls fail."""
    pass


class CompletionError(ExternalAPIError):
    """Exception raised when the completion oracle cannot answer."""
    pass
