"""Credential encryption for stored settings.

Credentials live in the configuration store as Fernet tokens and are only
decrypted inside ``execute()``, immediately before a transport client is
given them.  The plaintext is never cached on the trigger instance.
"""

from __future__ import annotations

from cryptography.fernet import Fernet, InvalidToken

from groundstation.exceptions import ConfigurationError, SecretDecryptionError
from groundstation.logging import get_logger

log = get_logger(__name__)

SECRET_SETTINGS: frozenset[str] = frozenset({"smtp_password", "mqtt_username", "mqtt_password"})


class SecretCipher:
    """Symmetric encryption of credential settings."""

    def __init__(self, key: str | bytes) -> None:
        self._fernet = Fernet(key)

    @classmethod
    def from_key(cls, key: str | None, stored: dict[str, object] | None = None) -> "SecretCipher":
        """Build a cipher from the configured key.

        Without a key an ephemeral one is generated, which is only acceptable
        while no encrypted value has been stored yet.
        """
        if key:
            return cls(key)
        populated = sorted(name for name in SECRET_SETTINGS if (stored or {}).get(name))
        if populated:
            raise ConfigurationError(
                "Encrypted settings are present but no secrets key is configured",
                context={"settings": populated},
            )
        log.debug("secrets_ephemeral_key")
        return cls(Fernet.generate_key())

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            return ""
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str, setting: str = "") -> str:
        if not token:
            return ""
        try:
            return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeEncodeError) as exc:
            log.error("secret_decrypt_failed", setting=setting)
            raise SecretDecryptionError(setting) from exc
