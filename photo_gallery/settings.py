from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional

class Settings(BaseSettings):
    aws_region: str = Field("us-east-1")
    s3_bucket: str = Field("photo-storage")
    aws_endpoint_url: Optional[str] = Field(None)
    # Base the browser uses to fetch objects, e.g. the MinIO port published on the host
    external_endpoint: str = Field("http://localhost:9000")

    aws_access_key_id: str = Field("test")
    aws_secret_access_key: str = Field("test")

    app_title: str = Field("Photo Gallery")
    host: str = Field("0.0.0.0")
    port: int = Field(3000)
    log_level: str = Field("INFO")

    # Seconds list/search wait for the startup recovery scan before answering 503
    index_ready_timeout: float = Field(10.0)

    class Config:
        env_file = ".env"
        extra = "allow"  # tolerate unknown vars if needed

settings = Settings()
