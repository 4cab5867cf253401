"""Fehlerklassen für Reservierungen, Konten und Rollen."""


class ReservationError(Exception):
    """Basisfehler mit Meldung und HTTP-Statuscode."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(ReservationError):
    """Ungültiges oder unzulässiges Feld (400)."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message, 400)


class NotFound(ReservationError):
    """Unbekannte Reservierungs-ID (404)."""

    def __init__(self, message: str):
        super().__init__(message, 404)


class Conflict(ReservationError):
    """Tisch bereits belegt oder ID bereits vergeben (409)."""

    def __init__(self, message: str):
        super().__init__(message, 409)


class AuthenticationError(ReservationError):
    def __init__(self, message: str):
        super().__init__(message, 401)


class PermissionDenied(ReservationError):
    def __init__(self, message: str):
        super().__init__(message, 403)
