"""FastAPI dependency: get_current_account_id.

Usage in any protected router:
    from src.om_gateway.auth.dependencies import get_current_account_id

    @router.get("/protected")
    async def protected(account_id: str = Depends(get_current_account_id)):
        ...

Only the token is checked here. Whether the account exists is decided by
the operation itself (the purchase engine reports USER_NOT_FOUND).
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.om_common.errors import InvalidCredentialsError
from src.om_gateway.auth.jwt_handler import decode_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/accounts")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_account_id(token: str = Depends(oauth2_scheme)) -> str:
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    account_id: str | None = payload.get("sub")
    if not account_id:
        raise _CREDENTIALS_EXCEPTION
    return account_id
