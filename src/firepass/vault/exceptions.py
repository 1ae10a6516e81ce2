# FirePass - Vault Errors
#
# Raised by the crypto engine and stores; VaultManager catches every one
# of these at its boundary and reports them through VaultResult.


class VaultError(Exception):
    """Base class for all vault failures."""

    default_message = "Vault operation failed"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)

    @property
    def code(self) -> str:
        return type(self).__name__


class AuthMismatch(VaultError):
    """Supplied password does not verify against the account hash."""

    default_message = "The password does not match your account's master password"


class InvalidCredentials(AuthMismatch):
    """Unlock-specific form of AuthMismatch."""

    default_message = "Incorrect master password"


class DecryptionError(VaultError):
    """AEAD tag failed or the blob is malformed (wrong key and corruption look the same)."""

    default_message = "Failed to decrypt vault. The vault might be corrupted or the password incorrect"


class VaultLockedError(VaultError):
    """Operation requires an unlocked vault."""

    default_message = "Vault is locked. Unlock vault first"


class PersistenceError(VaultError):
    """The underlying store failed to read or write."""

    default_message = "Vault storage failed"


class SetupRequiredError(VaultError):
    """Unlock attempted but no vault has been created."""

    default_message = "Vault not set up"


class VaultExistsError(VaultError):
    """Setup attempted while a vault blob already exists."""

    default_message = "Vault already exists. Use unlock() instead"


class AccountRequiredError(VaultError):
    """No account record, or the account has no master password hash."""

    default_message = "An authenticated user with a master password is required"


class ImportFormatError(VaultError):
    """Import document is not a JSON array of entry objects."""

    default_message = "Import file must contain a JSON array of vault entries"
