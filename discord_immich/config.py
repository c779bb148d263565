from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings


class ConfigurationError(Exception):
    """Raised when required settings are missing or invalid at startup."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("invalid configuration: " + "; ".join(problems))


class Settings(BaseSettings):
    DISCORD_APP_ID: int
    DISCORD_TOKEN: str

    # Comma-separated Discord user IDs allowed to run the Backup action
    DISCORD_AUTHORIZED_USER_IDS: str

    IMMICH_URL: str
    IMMICH_API_KEY: str

    # Reported to Immich as deviceId; falls back to the host name
    IMMICH_DEVICE_ID: str | None = Field(default=None)

    # Staging directory for attachments between download and upload
    CACHE_PATH: str

    # Web server
    PORT: int = Field(default=8000)

    @field_validator("DISCORD_AUTHORIZED_USER_IDS")
    @classmethod
    def _check_user_ids(cls, value: str) -> str:
        ids = [part.strip() for part in value.split(",") if part.strip()]
        if not ids:
            raise ValueError("at least one authorized user id is required")
        for user_id in ids:
            if not (user_id.isascii() and user_id.isdigit()):
                raise ValueError(f"{user_id!r} is not a Discord user id")
        return value

    @field_validator("DISCORD_TOKEN", "IMMICH_URL", "IMMICH_API_KEY", "CACHE_PATH")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("is required")
        return value

    @field_validator("IMMICH_URL")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.rstrip("/")
        if not value:
            raise ValueError("is required")
        return value

    @property
    def authorized_user_ids(self) -> frozenset[int]:
        return frozenset(
            int(part) for part in self.DISCORD_AUTHORIZED_USER_IDS.split(",") if part.strip()
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        frozen = True


def load_settings(**overrides) -> Settings:
    """
    Build the settings once at startup.

    Every missing or invalid variable is reported together, so an operator
    can fix the environment in one pass.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ConfigurationError(problems) from e
