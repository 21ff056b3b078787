"""
Vault Storage — Reading and writing container files.

Containers are opaque bytes here; this module never decodes them. Saves go
through a temporary file in the same folder that atomically replaces the
vault, so an interrupted save never leaves a truncated container.
"""
import os
import logging
from pathlib import Path
from typing import Union

from .. import conf
from ..exceptions import VaultStorageError

logger = logging.getLogger("crownix.vault")

PathLike = Union[str, os.PathLike]


def default_vault_path(folder: PathLike) -> Path:
    """Path of the vault file created in ``folder``."""
    return Path(folder) / conf.VAULT_FILE_NAME


def find_vault_files(folder: PathLike) -> list[Path]:
    """List the vault files (``*.cxv``) directly inside ``folder``.

    Raises:
        VaultStorageError: If the folder cannot be read.
    """
    try:
        entries = list(Path(folder).iterdir())
    except OSError as err:
        raise VaultStorageError(f"Cannot read folder {folder}: {err}") from err
    return sorted(
        path for path in entries
        if path.is_file() and path.suffix == conf.VAULT_FILE_EXTENSION
    )


def read_vault_file(path: PathLike) -> bytes:
    try:
        data = Path(path).read_bytes()
    except OSError as err:
        raise VaultStorageError(f"Failed to read vault file {path}: {err}") from err
    logger.debug("Read vault file %s (%d bytes)", path, len(data))
    return data


def create_vault_file(path: PathLike, data: bytes) -> Path:
    """Write a brand new vault file; an existing file is never overwritten.

    Raises:
        VaultStorageError: If the file exists or cannot be written.
    """
    path = Path(path)
    try:
        with path.open("xb") as fp:
            fp.write(data)
    except FileExistsError as err:
        raise VaultStorageError(f"Vault file {path} already exists") from err
    except OSError as err:
        raise VaultStorageError(f"Failed to create vault file {path}: {err}") from err
    logger.info("Created vault file %s", path)
    return path


def save_vault_file_atomic(path: PathLike, data: bytes) -> Path:
    """Replace the vault file through ``<name>.tmp`` in the same folder.

    Raises:
        VaultStorageError: If writing or replacing fails; the original file
            is left untouched.
    """
    path = Path(path)
    if not path.name:
        raise VaultStorageError(f"Invalid vault file path {path}")
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with tmp_path.open("wb") as fp:
            fp.write(data)
            fp.flush()
            os.fsync(fp.fileno())
        os.replace(tmp_path, path)
    except OSError as err:
        tmp_path.unlink(missing_ok=True)
        raise VaultStorageError(f"Failed to save vault file {path}: {err}") from err
    logger.debug("Saved vault file %s (%d bytes)", path, len(data))
    return path
