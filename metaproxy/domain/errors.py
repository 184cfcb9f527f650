"""
Director Errors
Request-fatal failures raised while directing a proxied request.
"""


class DirectorError(Exception):
    """Base class for errors that must stop a request from being forwarded."""

    status_code: int = 500
    code: str = "DIRECTOR_ERROR"
    error: str = "Request could not be proxied"


class DestinationParseError(DirectorError):
    """The embedded destination is missing or is not a valid URL."""

    status_code = 400
    code = "INVALID_DESTINATION"
    error = "Invalid destination"


class HostNotAllowedError(DirectorError):
    """The destination host matches no allow-list entry."""

    status_code = 403
    code = "HOST_NOT_ALLOWED"
    error = "Destination host not allowed"

    def __init__(self, host: str):
        super().__init__(f"invalid host: {host}")
        self.host = host


class SigningError(DirectorError):
    """A matched signer could not resolve credentials or compute a signature."""

    status_code = 401
    code = "SIGNING_FAILED"
    error = "Credential signing failed"


class CredentialNotFoundError(LookupError):
    """The credential store has no entry for a credential id."""

    def __init__(self, credential_id: str):
        super().__init__(f"credential not found: {credential_id}")
        self.credential_id = credential_id
