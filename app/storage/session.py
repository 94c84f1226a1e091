import boto3
from botocore.config import Config

from app.settings import Settings

def build_session(settings: Settings) -> boto3.session.Session:
    kwargs = {"region_name": settings.aws_region}
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        kwargs["aws_access_key_id"] = settings.aws_access_key_id
        kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
    return boto3.session.Session(**kwargs)

def client_config(settings: Settings, **extra) -> Config:
    """Bounds every AWS call so a slow store surfaces as an error instead of a hang."""
    return Config(
        connect_timeout=settings.connect_timeout_seconds,
        read_timeout=settings.read_timeout_seconds,
        retries={"max_attempts": settings.max_attempts, "mode": "standard"},
        **extra,
    )

def client_kwargs(settings: Settings, **extra) -> dict:
    kwargs = {"config": client_config(settings, **extra)}
    if settings.aws_endpoint_url:
        kwargs["endpoint_url"] = settings.aws_endpoint_url
    return kwargs
