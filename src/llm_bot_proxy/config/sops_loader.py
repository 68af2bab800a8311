"""
Reads proxy settings out of a SOPS-encrypted YAML file.

The file is decrypted by shelling out to the ``sops`` binary, so keys
(age, KMS, PGP) are resolved exactly as they are on the command line.
"""

import subprocess
from pathlib import Path
from typing import Any, Union

import yaml

SOPS_BINARY = "sops"
SOPS_TIMEOUT_SECONDS = 30


def _run_sops(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [SOPS_BINARY, *args],
        capture_output=True,
        text=True,
        check=True,
        timeout=SOPS_TIMEOUT_SECONDS,
    )


def decrypt_sops_file(file_path: Union[str, Path]) -> dict[str, Any]:
    """
    Decrypt a settings file and parse it.

    Args:
        file_path: Encrypted YAML file (e.g. config.enc.yaml)

    Returns:
        Top-level mapping of the document; an empty document gives {}

    Raises:
        FileNotFoundError: If the file is missing
        RuntimeError: If sops is unavailable or fails, or the plaintext
            is not a YAML mapping
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"Encrypted config file not found: {path}")

    try:
        decrypted = _run_sops("--decrypt", str(path)).stdout
    except FileNotFoundError as e:
        raise RuntimeError(
            f"'{SOPS_BINARY}' is not on PATH; install it from "
            "https://github.com/getsops/sops/releases"
        ) from e
    except subprocess.TimeoutExpired as e:
        raise RuntimeError(f"sops timed out after {SOPS_TIMEOUT_SECONDS}s on {path}") from e
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"Could not decrypt {path}: {e.stderr.strip()}") from e

    try:
        document = yaml.safe_load(decrypted)
    except yaml.YAMLError as e:
        raise RuntimeError(f"{path} did not decrypt to valid YAML: {e}") from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise RuntimeError(
            f"{path} must contain a mapping at the top level, got {type(document).__name__}"
        )
    return document


def check_sops_installed() -> bool:
    """True when the sops binary can be executed."""
    try:
        _run_sops("--version")
    except (OSError, subprocess.SubprocessError):
        return False
    return True
