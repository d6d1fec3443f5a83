from fastapi import Header

from jockeyfinder.errors import UnauthorizedError


async def get_caller_id(x_user_id: str | None = Header(None)) -> str:
    """Identité de l'appelant, posée par le fournisseur de session en amont."""
    if not x_user_id or not x_user_id.strip():
        raise UnauthorizedError()
    return x_user_id.strip()
