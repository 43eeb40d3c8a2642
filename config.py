"""
Configuration for the Space Explorer API

Values come from environment variables, with a .env file in the working
directory loaded first when present.

Environment:
    NASA_API_KEY        - api.nasa.gov key (default: DEMO_KEY)
    NASA_API_BASE_URL   - NASA base URL (default: https://api.nasa.gov)
    FLASK_ENV           - development / production / test
    PORT, HOST          - listen address (default: 0.0.0.0:5001)
    FRONTEND_URL        - extra CORS origin
    CORS_ORIGINS        - comma-separated CORS origins (overrides defaults)
    RATE_LIMIT_*        - per-IP request budget and its storage backend
"""

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

PRODUCTION_ORIGINS = ["https://your-frontend-domain.vercel.app"]
DEVELOPMENT_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    NASA_API_KEY = os.getenv("NASA_API_KEY", "DEMO_KEY")
    NASA_BASE_URL = os.getenv("NASA_API_BASE_URL", "https://api.nasa.gov").rstrip("/")

    ENVIRONMENT = os.getenv("FLASK_ENV", os.getenv("ENVIRONMENT", "development"))
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "5001"))

    UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "30"))
    ISS_CACHE_SECONDS = float(os.getenv("ISS_CACHE_SECONDS", "30"))

    # 100 requests per IP every 15 minutes
    RATE_LIMIT_ENABLED = _env_bool("RATE_LIMIT_ENABLED", "true")
    RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900"))
    RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.getenv("LOG_FORMAT", "console").lower()

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == "production"

    @classmethod
    def is_development(cls) -> bool:
        return cls.ENVIRONMENT == "development"

    @classmethod
    def cors_origins(cls) -> List[str]:
        """Allowed browser origins for the current environment."""
        explicit = os.getenv("CORS_ORIGINS")
        if explicit:
            origins = [o.strip() for o in explicit.split(",") if o.strip()]
        elif cls.is_production():
            origins = list(PRODUCTION_ORIGINS)
        else:
            origins = list(DEVELOPMENT_ORIGINS)

        frontend_url = os.getenv("FRONTEND_URL")
        if frontend_url and frontend_url not in origins:
            origins.append(frontend_url)
        return origins
