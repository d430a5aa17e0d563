"""Encrypting call-home reports with the GnuPG command-line tool."""

from __future__ import annotations

import logging
import os
import secrets
import string
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol, Union

from .errors import EncryptError

logger = logging.getLogger(__name__)

RECIPIENT = "[email]"
_NAME_ALPHABET = string.ascii_letters + string.digits
_NAME_LENGTH = 32

PathLike = Union[str, "os.PathLike[str]"]


class _Serialisable(Protocol):
    def to_json(self) -> bytes: ...


def _random_name() -> str:
    return "".join(secrets.choice(_NAME_ALPHABET) for _ in range(_NAME_LENGTH))


def gpg_command(
    encryption_dir: PathLike,
    key_filepath: PathLike,
    output_filepath: PathLike,
    input_filepath: PathLike,
) -> list[str]:
    """Argument list of the gpg invocation that encrypts input into output."""
    return [
        "gpg",
        "--yes",
        "--trust-model=always",
        f"--homedir={os.fspath(encryption_dir)}",
        f"--keyring={os.fspath(key_filepath)}",
        f"--recipient={RECIPIENT}",
        "--no-default-keyring",
        "--encrypt",
        "-z=9",
        f"--output={os.fspath(output_filepath)}",
        os.fspath(input_filepath),
    ]


def encrypt(
    report: _Serialisable, encryption_dir: PathLike, key_filepath: PathLike
) -> bytes:
    """Serialise the report to JSON and return it encrypted by gpg.

    Temporary files are created in encryption_dir and removed afterwards.
    Raises EncryptError if serialisation, file access or running gpg fails.
    """
    directory = Path(encryption_dir)
    try:
        with tempfile.NamedTemporaryFile(dir=directory, delete=False) as handle:
            input_path = Path(handle.name)
    except OSError as exc:
        raise EncryptError(exc) from exc
    logger.debug("Successfully created temporary input file.")

    try:
        try:
            payload = report.to_json()
        except (TypeError, ValueError) as exc:
            raise EncryptError(exc) from exc
        input_path.write_bytes(payload)
        logger.debug("Successfully written Report data to temporary input file.")

        output_path = directory / f"{_random_name()}.gpg"
        subprocess.run(
            gpg_command(directory, key_filepath, output_path, input_path),
            capture_output=True,
            check=False,
        )
        logger.debug("Successfully executed gpg command.")

        output = output_path.read_bytes()
        output_path.unlink()
        logger.debug("Successfully deleted output file.")
        return output
    except OSError as exc:
        raise EncryptError(exc) from exc
    finally:
        input_path.unlink(missing_ok=True)