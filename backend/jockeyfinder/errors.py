"""
Erreurs métier du noyau de coordination.

Chaque erreur est une HTTPException portant un code stable : les services
les lèvent directement et FastAPI les rend sans traduction supplémentaire.
"""
from typing import Any

from fastapi import HTTPException, status


class CoreError(HTTPException):
    """Base commune : message lisible + code d'erreur stable."""

    error_code = "ERROR"

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: str | None = None,
        headers: dict[str, Any] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        if error_code:
            self.error_code = error_code

    def __str__(self) -> str:
        return str(self.detail)


class ForbiddenError(CoreError):
    """Rôle ou propriété insuffisant (ex : propriétaire en lecture seule)."""

    def __init__(self, detail: str = "Access denied"):
        super().__init__(status.HTTP_403_FORBIDDEN, detail, "FORBIDDEN")


class NotApprovedError(CoreError):
    """Profil jockey/entraîneur pas encore approuvé par un admin."""

    def __init__(self, detail: str = "You must be approved before doing this."):
        super().__init__(status.HTTP_403_FORBIDDEN, detail, "NOT_APPROVED")


class NotFoundError(CoreError):
    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            status.HTTP_404_NOT_FOUND,
            f"{resource} not found: {identifier}",
            "NOT_FOUND",
        )


class ConflictError(CoreError):
    """Transition sur un état périmé (ex : demande déjà traitée)."""

    def __init__(self, detail: str):
        super().__init__(status.HTTP_409_CONFLICT, detail, "CONFLICT")


class ValidationError(CoreError):
    def __init__(self, detail: str, field: str | None = None):
        code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(status.HTTP_422_UNPROCESSABLE_ENTITY, detail, code)


class UnauthorizedError(CoreError):
    def __init__(self, detail: str = "Please log in first."):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            detail,
            "UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"},
        )


class UpstreamError(CoreError):
    """Calendrier externe injoignable ou réponse malformée."""

    def __init__(self, detail: str):
        super().__init__(status.HTTP_502_BAD_GATEWAY, detail, "UPSTREAM_ERROR")


class PersistenceError(CoreError):
    """Échec de la couche de stockage ; rien n'a été validé."""

    def __init__(self, detail: str):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail, "PERSISTENCE_ERROR")
