"""
piazza-client - Configuration
Loads environment variables (and the nearest .env file) and exposes them as typed settings.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Walk up from this file to find .env at any ancestor directory
_here = Path(__file__).resolve()
for _parent in [_here.parent, *_here.parents]:
    _candidate = _parent / ".env"
    if _candidate.exists():
        load_dotenv(_candidate, override=False)
        break


class Settings:
    # Backend gateway
    DOMAIN: str = os.getenv("DOMAIN", "")
    PZ_ADDR: str = os.getenv("PZ_ADDR", "")
    PZ_AUTH: str = os.getenv("PZ_AUTH", "")

    # HTTP transport
    PZ_HTTP_TIMEOUT_S: float = float(os.getenv("PZ_HTTP_TIMEOUT_S", "30"))
    PZ_VERIFY_TLS: bool = os.getenv("PZ_VERIFY_TLS", "TRUE").upper() == "TRUE"

    # Job polling
    PZ_JOB_MAX_POLLS: int = int(os.getenv("PZ_JOB_MAX_POLLS", "180"))
    PZ_JOB_POLL_INTERVAL_S: float = float(os.getenv("PZ_JOB_POLL_INTERVAL_S", "1.0"))

    # Logging
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    PZ_SERVICE: str = os.getenv("PZ_SERVICE", "piazza-client")

    @property
    def gateway_url(self) -> str:
        """Base address of the backend: PZ_ADDR, else the gateway derived from DOMAIN."""
        if self.PZ_ADDR:
            return self.PZ_ADDR.rstrip("/")
        if self.DOMAIN:
            return f"https://pz-gateway.{self.DOMAIN}"
        return ""

    @property
    def auth_configured(self) -> bool:
        placeholders = {"", "your_pz_auth_here"}
        return self.PZ_AUTH not in placeholders


settings = Settings()
