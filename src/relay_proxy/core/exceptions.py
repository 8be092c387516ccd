"""
Exceptions personnalisées pour le Relay Proxy.
"""


class RelayProxyError(Exception):
    """Exception de base pour toutes les erreurs du proxy."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or "unknown_error"
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"[{self.code}] {self.message} - Détails: {self.details}"
        return f"[{self.code}] {self.message}"


class ConfigurationError(RelayProxyError):
    """Erreur de configuration (fichier manquant, valeur invalide)."""

    def __init__(self, message: str, config_key: str = None):
        super().__init__(
            message=message,
            code="config_error",
            details={"key": config_key} if config_key else {}
        )


class ProviderError(RelayProxyError):
    """Erreur liée à un provider ou un modèle (inconnu, URL invalide)."""

    def __init__(self, message: str, provider: str = None, model: str = None, status_code: int = 502):
        details = {}
        if provider:
            details["provider"] = provider
        if model:
            details["model"] = model
        super().__init__(message=message, code="provider_error", details=details)
        self.status_code = status_code


class StreamingError(RelayProxyError):
    """Erreur lors du relais d'une réponse provider en streaming."""

    def __init__(
        self,
        message: str,
        error_type: str = None,
        status: int = None,
        details: dict = None
    ):
        super().__init__(
            message=message,
            code="streaming_error",
            details={
                "error_type": error_type,
                "status": status,
                **(details or {})
            }
        )
        self.error_type = error_type
        self.status = status
