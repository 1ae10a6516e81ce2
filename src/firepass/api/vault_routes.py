# FirePass - Vault API
#
# REST endpoints over VaultManager:
# - Account sync, setup, unlock, lock
# - Entry read/replace, import/export
# - Master password change, vault clear
# All endpoints require the session token.

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from ..vault import (
    EXPORT_FILENAME,
    AccountRecord,
    PasswordGeneratorSettings,
    VaultManager,
    VaultResult,
    generate_password,
)
from ..vault.exceptions import (
    AccountRequiredError,
    AuthMismatch,
    DecryptionError,
    ImportFormatError,
    PersistenceError,
    SetupRequiredError,
    VaultExistsError,
    VaultLockedError,
)
from .security import verify_session_token

router = APIRouter(prefix="/api/vault", tags=["vault"])

_vault_manager: Optional[VaultManager] = None


def get_vault_manager() -> VaultManager:
    """Get or create the process-wide VaultManager."""
    global _vault_manager
    if _vault_manager is None:
        _vault_manager = VaultManager()
    return _vault_manager


def set_vault_manager(manager: Optional[VaultManager]) -> None:
    """Replace the process-wide VaultManager (for testing)."""
    global _vault_manager
    _vault_manager = manager


def close_vault_manager() -> None:
    """Lock the process-wide VaultManager, if one was created."""
    if _vault_manager is not None:
        _vault_manager.close()


# Request/Response Models
class AccountRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    hashed_master_password: Optional[str] = Field(None, pattern="^[0-9a-f]{32}:[0-9a-f]{64}$")


class PasswordRequest(BaseModel):
    master_password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class EntriesRequest(BaseModel):
    entries: List[Dict[str, Any]]


class ClearVaultRequest(BaseModel):
    confirm: bool = False


class GeneratePasswordRequest(BaseModel):
    length: int = Field(16, ge=8, le=64)
    use_uppercase: bool = True
    use_lowercase: bool = True
    use_numbers: bool = True
    use_symbols: bool = True


class VaultStatusResponse(BaseModel):
    state: str
    is_unlocked: bool
    needs_setup: bool
    vault_exists: bool


_STATUS_BY_ERROR = (
    (VaultLockedError, status.HTTP_403_FORBIDDEN),
    (AuthMismatch, status.HTTP_401_UNAUTHORIZED),
    (DecryptionError, status.HTTP_401_UNAUTHORIZED),
    (SetupRequiredError, status.HTTP_409_CONFLICT),
    (VaultExistsError, status.HTTP_409_CONFLICT),
    (AccountRequiredError, status.HTTP_409_CONFLICT),
    (ImportFormatError, 422),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def _check(result: VaultResult) -> VaultResult:
    """Raise the HTTP error matching a failed VaultResult."""
    if result.success:
        return result
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, error_code in _STATUS_BY_ERROR:
        if isinstance(result.error, error_type):
            code = error_code
            break
    raise HTTPException(status_code=code, detail=result.message)


def _ok(result: VaultResult) -> Dict[str, Any]:
    return {"success": True, "message": _check(result).message}


# Endpoints

@router.get("/status", response_model=VaultStatusResponse)
def get_vault_status(
    vault: VaultManager = Depends(get_vault_manager),
    token: str = Depends(verify_session_token),
):
    """Current lifecycle state."""
    state = vault.state
    return VaultStatusResponse(
        state=state.value,
        is_unlocked=vault.is_unlocked,
        needs_setup=state.value == "needs_setup",
        vault_exists=vault.vault_exists,
    )


@router.put("/account")
def set_account(
    request: AccountRequest,
    vault: VaultManager = Depends(get_vault_manager),
    token: str = Depends(verify_session_token),
):
    """
    Sync the signed-in account from the auth subsystem.

    Switching to a different user locks the vault.
    """
    state = vault.set_account(
        AccountRecord(
            user_id=request.user_id,
            hashed_master_password=request.hashed_master_password,
        )
    )
    return {"success": True, "state": state.value}


@router.post("/setup")
def setup_vault(
    request: PasswordRequest,
    vault: VaultManager = Depends(get_vault_manager),
    token: str = Depends(verify_session_token),
):
    """Create the vault. The password must be the account's master password."""
    return _ok(vault.setup(request.master_password))


@router.post("/unlock")
def unlock_vault(
    request: PasswordRequest,
    vault: VaultManager = Depends(get_vault_manager),
    token: str = Depends(verify_session_token),
):
    """Unlock the vault with the master password."""
    return _ok(vault.unlock(request.master_password))


@router.post("/lock")
def lock_vault(
    vault: VaultManager = Depends(get_vault_manager),
    token: str = Depends(verify_session_token),
):
    """Lock the vault and wipe the session key."""
    return _ok(vault.lock())


@router.get("/entries")
def list_entries(
    vault: VaultManager = Depends(get_vault_manager),
    token: str = Depends(verify_session_token),
):
    """Decrypted entries. Requires the vault to be unlocked."""
    if not vault.is_unlocked:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Vault is locked. Unlock vault first."
        )
    return {"entries": vault.entries}


@router.put("/entries")
def replace_entries(
    request: EntriesRequest,
    vault: VaultManager = Depends(get_vault_manager),
    token: str = Depends(verify_session_token),
):
    """Replace all entries and re-encrypt the vault."""
    return _ok(vault.update_entries(request.entries))


@router.post("/change-password")
def change_master_password(
    request: ChangePasswordRequest,
    vault: VaultManager = Depends(get_vault_manager),
    token: str = Depends(verify_session_token),
):
    """
    Re-key the vault under a new master password.

    The response carries the new account hash for the auth subsystem.
    """
    _check(vault.change_master_password(request.old_password, request.new_password))
    return {
        "success": True,
        "message": "Master password changed successfully.",
        "hashed_master_password": vault.account.hashed_master_password,
    }


@router.post("/clear")
def clear_vault(
    request: ClearVaultRequest,
    vault: VaultManager = Depends(get_vault_manager),
    token: str = Depends(verify_session_token),
):
    """Delete the vault. Requires {"confirm": true}."""
    if not request.confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Clearing the vault is irreversible; resend with confirm=true."
        )
    return _ok(vault.clear_vault())


@router.get("/export")
def export_vault(
    vault: VaultManager = Depends(get_vault_manager),
    token: str = Depends(verify_session_token),
):
    """Download the decrypted entries as a JSON attachment."""
    result = _check(vault.export_vault())
    return Response(
        content=result.data,
        media_type="application/json",
        headers={
            "Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"',
            "Cache-Control": "no-store",
        },
    )


@router.post("/import")
def import_vault(
    document: Any = Body(...),
    vault: VaultManager = Depends(get_vault_manager),
    token: str = Depends(verify_session_token),
):
    """
    Overwrite all entries with an imported JSON array (no merge).

    Every element must carry non-empty id, key and value.
    """
    try:
        entries = VaultManager.parse_import(document)
    except ImportFormatError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _ok(vault.import_vault(entries))


@router.post("/generate-password")
def generate_entry_password(
    request: GeneratePasswordRequest,
    token: str = Depends(verify_session_token),
):
    """Generate a random secret for a new entry."""
    settings = PasswordGeneratorSettings(**request.model_dump())
    try:
        password = generate_password(settings)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"password": password}
