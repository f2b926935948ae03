from typing import Optional


class MealAssistantError(Exception):
    """Base class for recoverable failures of the meal ranking engine."""


class AiKeyDecryptionError(MealAssistantError):
    pass


class UnsupportedProviderError(MealAssistantError):
    pass


class AiProviderError(MealAssistantError):
    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
