class CommentingError(Exception):
    """Base class for failures while preparing or uploading a PR review."""


class ConfigurationError(CommentingError):
    """Feature parameters or the VCS root cannot be turned into a review request."""


class AuthenticationError(CommentingError):
    """The configured credentials were rejected by GitHub."""


class UnexpectedUploadError(CommentingError):
    """Anything else that went wrong during repository lookup or review upload."""
