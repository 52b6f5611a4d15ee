"""Domain errors raised by services and rendered by the API as {"detail", "error"}."""


class ClipSyncError(Exception):
    """Base class. Subclasses set the HTTP status and a machine-readable kind."""

    status_code = 400
    kind = "error"

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.default_detail())
        self.detail = str(self)

    @classmethod
    def default_detail(cls) -> str:
        return cls.__name__


class FormatError(ClipSyncError):
    """Malformed input: wrong code length, unparsable timestamp."""

    status_code = 400
    kind = "format"


class NotFoundError(ClipSyncError):
    """Entity absent or owned by someone else (same response either way)."""

    status_code = 404
    kind = "not_found"


class ConflictError(ClipSyncError):
    status_code = 409
    kind = "conflict"


class StateError(ClipSyncError):
    """Entity exists but is not in a state that allows the operation."""

    status_code = 400
    kind = "state"


class UsedError(StateError):
    kind = "used"

    @classmethod
    def default_detail(cls) -> str:
        return "Pairing code already used"


class ExpiredError(StateError):
    kind = "expired"

    @classmethod
    def default_detail(cls) -> str:
        return "Pairing code expired"


class VaultMissingError(ClipSyncError):
    status_code = 403
    kind = "vault_missing"

    @classmethod
    def default_detail(cls) -> str:
        return "Vault not set up"


class StorageUnavailableError(ClipSyncError):
    """Storage cannot satisfy the request right now; the caller may retry."""

    status_code = 503
    kind = "unavailable"
