"""Domain errors mapped to HTTP responses by the app's exception handler."""

from fastapi import status

from shared.clients import VercelAPIError


class BuilderError(Exception):
    """Base error carrying the HTTP status it should be reported with."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ProjectNotFound(BuilderError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Project not found"


class NoCompleteBuild(BuilderError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "No completed build found. Build your project first."


class NotPublished(BuilderError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not published"


class InvalidSlug(BuilderError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Invalid format. Use 3-48 lowercase letters, numbers, and hyphens."


class SlugConflict(BuilderError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "This address is already taken by another project."


class BuildInProgress(BuilderError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "A build is already running for this project."


class PublishingUnavailable(BuilderError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Publishing is not available right now. Please try again later."


class ProviderMisconfigured(BuilderError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Publishing service configuration error. Please contact support."


class InvalidProviderToken(BuilderError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid Vercel token. Please check your access token."


class PublishError(BuilderError):
    """Provider failure surfaced to the caller with the provider's message."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Publishing failed. Please try again."


def provider_error(
    exc: VercelAPIError, auth_error: type[BuilderError] = ProviderMisconfigured
) -> BuilderError:
    """Translate a Vercel API error, hiding credential state on 401/403."""
    if exc.is_auth_error:
        return auth_error()
    return PublishError(exc.message)
