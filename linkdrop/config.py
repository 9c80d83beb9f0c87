from pathlib import Path

from pydantic_settings import BaseSettings

from linkdrop.files.file_id import MAX_ID_LENGTH


class Settings(BaseSettings):
    upload_dir: Path = Path("upload")
    max_id_length: int = MAX_ID_LENGTH
    upload_limit_mb: int = 1000

    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"

    # TLS settings
    certs_dir: Path = Path("certs")
    key_file_name: str = "key.pem"
    cert_file_name: str = "cert.pem"
    subject_alt_name: str = "localhost"

    @property
    def upload_limit_bytes(self) -> int:
        return self.upload_limit_mb * 1024 * 1024

    class Config:
        env_file = ".env"


settings = Settings()
