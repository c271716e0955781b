"""Hata sınıfları. Her biri HTTP durum koduyla eşlenir (main.py handler'ı)."""


class PushgateError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(PushgateError):
    """Eksik/bozuk girdi; hiçbir yan etkiden önce reddedilir."""
    status_code = 400


class AuthError(PushgateError):
    status_code = 401


class NotFoundError(PushgateError):
    status_code = 404


class StateConflictError(PushgateError):
    """Onay süreci artık 'pending' değil (veya başka bir istek sonuçlandırıyor)."""
    status_code = 400


class UpstreamError(PushgateError):
    """Webhook veya push sağlayıcısı hatası."""
    status_code = 500


class ResourceExhaustedError(PushgateError):
    """Mesaj boyut sınırını aşıyor."""
    status_code = 400


class CryptoError(Exception):
    """Şifreleme/anahtar türetme hatası. HTTP'ye eşlenmez; içerik 'gösterilemiyor' olarak işlenir."""


class DecryptionError(CryptoError):
    pass


def first_error_message(exc) -> str:
    """Pydantic ValidationError'dan kullanıcıya gösterilecek ilk mesaj ('Value error, ' öneki olmadan)."""
    errors = exc.errors()
    if not errors:
        return "Geçersiz girdi."
    err = errors[0]
    ctx_error = (err.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    return (err.get("msg") or "Geçersiz girdi.").removeprefix("Value error, ")
