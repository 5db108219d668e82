"""
Journal application settings.

Extends the base settings with journal-specific configuration.
"""

from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """Journal-specific settings."""

    # ==========================================================================
    # Auth cookies
    # ==========================================================================
    # Send cookies over HTTPS only; keep False for local http development
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: str = "lax"

    # ==========================================================================
    # Frontend
    # ==========================================================================
    CLIENT_URL: str = "http://localhost:5173"

    # ==========================================================================
    # End-of-day migration
    # ==========================================================================
    # Upper bound on users loaded per batch while scanning
    EOD_BATCH_SIZE: int = 500

    def get_cors_origins(self) -> list:
        """CORS origins, always including the SPA's own URL."""
        origins = super().get_cors_origins()
        if origins != ["*"] and self.CLIENT_URL not in origins:
            origins.append(self.CLIENT_URL)
        return origins


# Global settings instance
settings = Settings()
