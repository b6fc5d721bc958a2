from fastapi import Response
from freedomgate.config import Settings


def set_token_cookie(response: Response, name: str, token: str, settings: Settings, max_age: int) -> None:
    response.set_cookie(
        key=name,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        path="/",
    )


def clear_token_cookie(response: Response, name: str, settings: Settings) -> None:
    response.delete_cookie(
        key=name,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )
