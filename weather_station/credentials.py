"""Device credential loading.

The device authenticates with an RSA private key shipped alongside the
application as a PKCS8 file, DER or PEM encoded. Only the private half is
needed since the key is used for signing connection tokens.
"""

import logging
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

_SUFFIXES = ("", ".der", ".pem")


class CredentialError(Exception):
    pass


class MissingCredentialError(CredentialError):
    pass


class InvalidKeyError(CredentialError):
    pass


class UnsupportedKeyAlgorithmError(CredentialError):
    pass


class KeyStore:
    """Raw key material bundled in a directory, looked up by identifier."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def get(self, identifier: str) -> bytes:
        if not identifier or Path(identifier).name != identifier:
            raise MissingCredentialError(f"Invalid key identifier: {identifier!r}")
        for suffix in _SUFFIXES:
            path = self.directory / f"{identifier}{suffix}"
            if path.is_file():
                logging.debug("Loading key material from %s", path)
                try:
                    return path.read_bytes()
                except OSError as exc:
                    raise MissingCredentialError(f"Could not read key {path}: {exc}") from exc
        raise MissingCredentialError(f"No key named {identifier!r} in {self.directory}")


def load_private_key(raw: bytes) -> RSAPrivateKey:
    """Parse PKCS8 key bytes into an RSA private key."""
    if not raw:
        raise InvalidKeyError("Key material is empty")
    if raw.lstrip().startswith(b"-----"):
        loader = serialization.load_pem_private_key
    else:
        loader = serialization.load_der_private_key
    try:
        key = loader(raw, password=None)
    except UnsupportedAlgorithm as exc:
        raise UnsupportedKeyAlgorithmError(f"Unsupported key algorithm: {exc}") from exc
    except (ValueError, TypeError) as exc:
        raise InvalidKeyError(f"Invalid key spec: {exc}") from exc
    if not isinstance(key, RSAPrivateKey):
        raise UnsupportedKeyAlgorithmError(f"Expected an RSA key, got {type(key).__name__}")
    return key
