"""Path validation utilities for the vault and its documents."""

from pathlib import Path, PurePosixPath

from ..exceptions import ConfigurationError, DocumentStoreError


def validate_vault_path(vault_path: Path) -> Path:
    """Validate vault path for existence.

    Args:
        vault_path: Path to validate

    Returns:
        Resolved absolute path

    Raises:
        ConfigurationError: If path is missing or not a directory
    """
    vault_path = vault_path.expanduser()

    if not vault_path.exists():
        raise ConfigurationError(
            f"Vault path does not exist: {vault_path}",
            suggestion="Verify the vault_path in your configuration points to an existing directory",
        )

    if not vault_path.is_dir():
        raise ConfigurationError(
            f"Vault path is not a directory: {vault_path}",
            suggestion="vault_path must point to a directory, not a file",
        )

    return vault_path.resolve()


def resolve_document_path(vault_path: Path, relative_path: str) -> Path:
    """Resolve a vault-relative POSIX path to an absolute path inside the vault.

    Args:
        vault_path: Resolved vault root
        relative_path: Vault-relative path using forward slashes

    Returns:
        Absolute path to the document (may not exist yet)

    Raises:
        DocumentStoreError: If the path is absolute or escapes the vault
    """
    posix = PurePosixPath(relative_path)
    if posix.is_absolute() or not relative_path.strip():
        raise DocumentStoreError(
            f"Expected a vault-relative path, got: {relative_path!r}",
            context={"path": relative_path},
        )

    resolved = (vault_path / Path(*posix.parts)).resolve(strict=False)

    # Prevent path traversal
    try:
        resolved.relative_to(vault_path)
    except ValueError:
        raise DocumentStoreError(
            f"Path is outside vault: {relative_path}",
            suggestion="Document paths must stay within the vault directory",
            context={"path": relative_path},
        ) from None

    return resolved
