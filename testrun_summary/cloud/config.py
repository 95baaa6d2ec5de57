"""Configuration for the cloud API client."""

from pydantic import BaseModel, SecretStr

DEFAULT_API_BASE_URL = "https://api.k6.io"


class CloudConfig(BaseModel):
    """Configuration for the cloud API client."""

    token: SecretStr
    api_base_url: str = DEFAULT_API_BASE_URL
    timeout: float = 60.0
