# core/errors.py
"""
Error taxonomy for the blog

Every error carries a static, user-facing message. Views show that
message and never the underlying exception text.
"""


class BlogError(Exception):
    """Base class for recoverable request errors"""

    default_message = 'Something went wrong. Please try again.'

    def __init__(self, user_message: str = None, detail: str = None):
        self.user_message = user_message or self.default_message
        self.detail = detail
        super().__init__(detail or self.user_message)


class ValidationError(BlogError):
    """A required field is missing or malformed"""

    default_message = 'Please fill in all required fields.'


class NotFoundError(BlogError):
    """Missing id or a lookup that matched nothing"""

    default_message = 'The requested item was not found.'


class StoreError(BlogError):
    """Database connectivity or query failure"""

    default_message = 'Internal server error. Please try again later.'


class AuthError(BlogError):
    """No session, an expired session, or bad credentials"""

    default_message = 'Please log in to access this page.'
