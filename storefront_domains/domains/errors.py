"""
Error taxonomy for custom domain onboarding.

Every error carries a ``retryable`` flag and a ``user_message`` that is safe
to show in the settings form. Registration errors reach the user directly;
reconciliation errors are logged by the polling loop and retried on the next
tick.
"""


class DomainError(Exception):
    """Base class for custom domain failures."""

    retryable = False
    user_message = "Something went wrong while updating your domain."

    def __init__(self, message: str = "", user_message: str = ""):
        super().__init__(message or self.user_message)
        if user_message:
            self.user_message = user_message


class InvalidDomainFormat(DomainError):
    """Tenant input is not a valid hostname."""

    user_message = "Please enter a valid domain (e.g., mycompany.com)"


class DomainConflict(DomainError):
    """Tenant already has a domain, or the hostname belongs to another tenant."""

    user_message = "This domain is already in use by another store"


class DomainNotReady(DomainError):
    """Operation needs a later verification stage than the domain has reached."""

    user_message = "Your DNS records have not been verified yet."


class ProviderRejected(DomainError):
    """Domain provider refused the request (non-2xx answer)."""

    user_message = (
        "The hosting provider rejected this domain. "
        "Make sure it is not connected to another site."
    )

    def __init__(self, message: str = "", status_code: int = 0, user_message: str = ""):
        super().__init__(message, user_message)
        self.status_code = status_code


class ProviderTransportError(DomainError):
    """Network failure or timeout talking to the domain provider."""

    retryable = True
    user_message = "The hosting provider could not be reached. Please try again."


class PersistenceError(DomainError):
    """Settings store unreachable; the operation was not applied."""

    user_message = "Save failed. Please try again."
