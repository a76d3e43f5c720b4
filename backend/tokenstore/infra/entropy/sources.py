# tokenstore/infra/entropy/sources.py
"""Platform entropy sources, strongest first.

Each source answers ``read(size)`` with exactly ``size`` bytes or ``None``.
Ordinary unavailability (missing device, unseeded generator, platform without
an OS random source) is reported as ``None`` so the generator can move on to
the next source.
"""

from __future__ import annotations

import hashlib
import logging
import random
import secrets
import ssl
from collections.abc import Sequence
from dataclasses import dataclass

from tokenstore.services._shared.ports import EntropySource

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_PATH = "/dev/urandom"


@dataclass(slots=True)
class SecretsEntropySource(EntropySource):
    """Operating-system CSPRNG exposed through :mod:`secrets`."""

    name: str = "secrets"
    strong: bool = True

    def read(self, size: int) -> bytes | None:
        try:
            return secrets.token_bytes(size)
        except (NotImplementedError, OSError) as exc:
            logger.warning("secrets.token_bytes unavailable: %s", exc)
            return None


@dataclass(slots=True)
class OpenSSLEntropySource(EntropySource):
    """OpenSSL's generator, accepted only while it reports itself seeded.

    ``ssl.RAND_status()`` is the strength flag: ``False`` means OpenSSL
    cannot vouch for the output, and the bytes are refused.
    """

    name: str = "openssl"
    strong: bool = True

    def read(self, size: int) -> bytes | None:
        if not ssl.RAND_status():
            logger.warning("OpenSSL PRNG reports insufficient seeding; skipping")
            return None
        try:
            return ssl.RAND_bytes(size)
        except ssl.SSLError as exc:
            logger.warning("ssl.RAND_bytes failed: %s", exc)
            return None


@dataclass(slots=True)
class DeviceEntropySource(EntropySource):
    """Non-blocking platform entropy device such as ``/dev/urandom``."""

    path: str = DEFAULT_DEVICE_PATH
    name: str = "device"
    strong: bool = True

    def read(self, size: int) -> bytes | None:
        try:
            with open(self.path, "rb") as device:
                return device.read(size)
        except OSError as exc:
            logger.warning("Entropy device %s unreadable: %s", self.path, exc)
            return None


@dataclass(slots=True)
class WeakHashEntropySource(EntropySource):
    """Last resort: a hashed, small-range, non-cryptographic random number.

    Output is trivially guessable (61 possible seeds). The generator refuses
    this source unless weak fallback is explicitly enabled.
    """

    name: str = "weak-hash"
    strong: bool = False

    def read(self, size: int) -> bytes | None:
        seed = random.randint(40, 100)
        digest = hashlib.sha512(str(seed).encode("ascii")).hexdigest()
        return bytes.fromhex(digest[: size * 2])


def default_sources(*, device_path: str = DEFAULT_DEVICE_PATH) -> Sequence[EntropySource]:
    """Return the standard chain: secrets, OpenSSL, device, weak hash."""
    return (
        SecretsEntropySource(),
        OpenSSLEntropySource(),
        DeviceEntropySource(path=device_path),
        WeakHashEntropySource(),
    )
