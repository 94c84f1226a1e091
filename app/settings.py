from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings

from app.exceptions import ConfigurationError

class Settings(BaseSettings):
    # Required: the service refuses to start without a target bucket
    s3_bucket: str = Field(..., min_length=3)
    aws_region: str = "us-east-1"
    likes_table: str = "LikesTable"
    aws_endpoint_url: Optional[str] = None
    external_endpoint: Optional[str] = None

    # Left unset, boto3 falls back to its default credential chain
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None

    presign_expire_seconds: int = Field(36000, ge=60, le=604800)
    signing_mode: Literal["shared_key", "delegated"] = "shared_key"
    delegation_role_arn: Optional[str] = None
    delegation_duration_seconds: int = Field(43200, ge=900, le=129600)

    connect_timeout_seconds: float = Field(10, gt=0)
    read_timeout_seconds: float = Field(30, gt=0)
    max_attempts: int = Field(3, ge=1)

    port: int = 8000
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @model_validator(mode="after")
    def check_delegation_window(self):
        if self.signing_mode == "delegated" and self.delegation_duration_seconds <= self.presign_expire_seconds:
            raise ValueError(
                "delegation_duration_seconds must exceed presign_expire_seconds in delegated signing mode"
            )
        return self

def load_settings(**overrides) -> Settings:
    """Builds settings from the environment, raising ConfigurationError when invalid."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "settings" for err in e.errors())
        raise ConfigurationError(f"Invalid or missing configuration: {fields}") from e

@lru_cache
def get_settings() -> Settings:
    return load_settings()
