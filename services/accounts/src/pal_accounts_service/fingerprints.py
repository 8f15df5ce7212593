"""
Address Fingerprints
====================

Derives the non-reversible fingerprint that stands in for a client address.
Only fingerprints are ever persisted, never the addresses themselves.
"""

import base64
import binascii
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from sqlalchemy.ext.asyncio import AsyncSession

from pal_errors import ConfigurationError, ConfigurationMissingError
from pal_infrastructure import OnceCell
from pal_logging import get_logger

from .address_resolver import IPAddress
from .models import SALT_SETTING_KEY, GlobalSetting

logger = get_logger(__name__)

HASH_ALGORITHMS = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
    "sha512": hashes.SHA512,
}


class IdentityHasher:
    """PBKDF2-HMAC fingerprinting of client addresses."""

    def __init__(self, iterations: int = 10_000, length: int = 24, algorithm: str = "sha1") -> None:
        if algorithm not in HASH_ALGORITHMS:
            raise ValueError(f"Unsupported fingerprint hash: {algorithm}")
        self.iterations = iterations
        self.length = length
        self.algorithm = algorithm

    def fingerprint(self, address: IPAddress, salt: bytes) -> str:
        """Return the base64 fingerprint of ``address`` under ``salt``."""
        kdf = PBKDF2HMAC(
            algorithm=HASH_ALGORITHMS[self.algorithm](),
            length=self.length,
            salt=salt,
            iterations=self.iterations,
        )
        return base64.b64encode(kdf.derive(address.packed)).decode("ascii")


class SaltProvider:
    """
    Lazily loads the process-wide salt from the ``global_settings`` table.

    The salt lives in an injected ``OnceCell``; after the first successful
    read no further storage round-trips happen. The durable value is not
    rotated while the process runs, so redundant concurrent first reads all
    agree.
    """

    def __init__(self, cell: Optional[OnceCell[bytes]] = None) -> None:
        self.cell: OnceCell[bytes] = cell if cell is not None else OnceCell()

    async def get_salt(self, session: AsyncSession) -> bytes:
        cached = self.cell.get()
        if cached is not None:
            return cached

        setting = await session.get(GlobalSetting, SALT_SETTING_KEY)
        if setting is None:
            raise ConfigurationMissingError(SALT_SETTING_KEY)
        try:
            salt = base64.b64decode(setting.value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ConfigurationError(f"Setting '{SALT_SETTING_KEY}' is not valid base64: {e}")
        if not salt:
            raise ConfigurationError(f"Setting '{SALT_SETTING_KEY}' is empty")

        logger.info("Loaded fingerprint salt", salt_bytes=len(salt))
        return self.cell.set(salt)
