"""Headers de autenticación para la API web de X.

Las cookies `auth_token` y `ct0` llegan ya validadas (config o CLI); aquí
solo se arma el set de headers que espera el cliente web.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from core.config import DEFAULT_USER_AGENT, AppSettings

# Bearer público del cliente web de x.com (no es un secreto de usuario).
WEB_BEARER_TOKEN = (
    "AAAAAAAAAAAAAAAAAAAAANRILgAAAAAAnNwIzUejRCOuH5E6I8xnZz4puTs%3D"
    "1Zv7ttfk8LF81IUq16cHjhLTvJu4FA33AGWWjCpTnA"
)


class MissingCredentialsError(ValueError):
    pass


@dataclass(frozen=True)
class XCredentials:
    auth_token: str = field(repr=False)
    ct0: str = field(repr=False)
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if not self.auth_token or not self.ct0:
            raise MissingCredentialsError("Both auth_token and ct0 cookies are required")

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "XCredentials":
        return cls(
            auth_token=settings.auth_token or "",
            ct0=settings.ct0 or "",
            user_agent=settings.user_agent,
        )

    def headers(self) -> dict[str, str]:
        return {
            "authorization": f"Bearer {WEB_BEARER_TOKEN}",
            "content-type": "application/json",
            "x-csrf-token": self.ct0,
            "x-twitter-auth-type": "OAuth2Session",
            "x-twitter-active-user": "yes",
            "x-twitter-client-language": "en",
            "cookie": f"auth_token={self.auth_token}; ct0={self.ct0}",
            "user-agent": self.user_agent,
            "origin": "https://x.com",
            "referer": "https://x.com/",
        }
