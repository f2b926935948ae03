"""Encryption of household AI provider API keys at rest.

Keys are stored as compact JWE tokens (direct encryption, A256GCM) derived from
AI_SETTINGS_SECRET_KEY, so rotating that secret makes existing keys undecryptable.
"""
import hashlib
from typing import Optional

from jose import jwe
from jose.exceptions import JOSEError

from recipe_manager.app.core.config import get_settings
from recipe_manager.app.services.errors import AiKeyDecryptionError

_ALGORITHM = "dir"
_ENCRYPTION = "A256GCM"


class HouseholdAiSettingsService:
    def __init__(self, secret: Optional[str] = None):
        secret = secret or get_settings().ai_settings_secret_key
        # A256GCM with "dir" needs exactly 32 bytes of key material, one SHA-256 digest
        self._key = hashlib.sha256(secret.encode("utf-8")).digest()

    def encrypt(self, api_key: str) -> str:
        token = jwe.encrypt(api_key.encode("utf-8"), self._key, algorithm=_ALGORITHM, encryption=_ENCRYPTION)
        return token.decode("utf-8") if isinstance(token, bytes) else token

    def decrypt(self, encrypted: str) -> str:
        try:
            plaintext = jwe.decrypt(encrypted, self._key)
        except (JOSEError, ValueError, TypeError) as exc:
            raise AiKeyDecryptionError("Unable to decrypt household AI API key") from exc
        if plaintext is None:
            raise AiKeyDecryptionError("Unable to decrypt household AI API key")
        return plaintext.decode("utf-8")
