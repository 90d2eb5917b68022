"""Error taxonomy shared by the controller, the registry client and the host."""


class SpotlightError(Exception):
    """Base class for recoverable errors in this package."""


class TransportError(SpotlightError):
    """A backend call was rejected or the backend could not be reached."""


class ValidationError(SpotlightError):
    """Malformed input caught before anything is sent to the backend."""


class RegistryError(SpotlightError):
    """Semantic error reported by the provider registry."""

    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name


class DuplicateNameError(RegistryError):
    def __init__(self, name: str):
        super().__init__(name, f"provider with name {name} already exists")


class NotFoundError(RegistryError):
    def __init__(self, name: str):
        super().__init__(name, f"provider with name {name} does not exist")


class UnknownTokenError(SpotlightError):
    """A confirmation token that was never issued or is already resolved."""

    def __init__(self, token: str):
        super().__init__(f"no pending confirmation with token {token}")
        self.token = token
