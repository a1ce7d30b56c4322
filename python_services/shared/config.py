"""
Shared configuration for the narration services.
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv, find_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Load environment variables from python_services/.env, regardless of CWD
base_dir = Path(__file__).resolve().parents[1]  # points to python_services/
dotenv_path = base_dir / ".env"
example_path = base_dir / "env.example"

_loaded = False
if dotenv_path.exists():
    # Override any stale OS env vars with the ones in .env
    load_dotenv(dotenv_path, override=True)
    logger.info(f"✅ Loaded environment variables from {dotenv_path}")
    _loaded = True
else:
    # Fallback: search upwards from CWD
    discovered = find_dotenv(usecwd=True)
    if discovered:
        load_dotenv(discovered, override=True)
        logger.info(f"✅ Loaded environment variables from {discovered}")
        _loaded = True

# As a last resort, load env.example (does not override real env values)
if not _loaded and example_path.exists():
    load_dotenv(example_path, override=False)
    logger.info(f"✅ Loaded environment variables from sample {example_path}")


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Service Configuration
    service_name: str = Field(default="narration-orchestrator", alias='SERVICE_NAME')
    service_port: int = Field(default=8000)
    debug: bool = Field(default=False, alias='DEBUG')

    # Logging
    log_level: str = Field(default="INFO", alias='LOG_LEVEL')

    # Collaborator services (gate, generation, follow-ups, curator, audience)
    slide_services_url: str = Field(default="http://localhost:3000", alias='SLIDE_SERVICES_URL')
    slide_services_timeout: float = Field(default=60.0, alias='SLIDE_SERVICES_TIMEOUT')
    slide_services_max_tries: int = Field(default=2, alias='SLIDE_SERVICES_MAX_TRIES')

    # Orchestration policy
    exploratory_interval_seconds: float = Field(default=20.0, alias='EXPLORATORY_INTERVAL_SECONDS')
    exploratory_capacity: int = Field(default=10, alias='EXPLORATORY_CAPACITY')
    style_reference_limit: int = Field(default=2, alias='STYLE_REFERENCE_LIMIT')
    first_slide_threshold: int = Field(default=20, alias='FIRST_SLIDE_THRESHOLD')
    next_slide_threshold: int = Field(default=30, alias='NEXT_SLIDE_THRESHOLD')
    min_final_segment_chars: int = Field(default=5, alias='MIN_FINAL_SEGMENT_CHARS')
    stream_idea_min_chars: int = Field(default=20, alias='STREAM_IDEA_MIN_CHARS')
    synthesize_fallback_slide: bool = Field(default=True, alias='SYNTHESIZE_FALLBACK_SLIDE')

    # Sessions and request limits
    session_ttl_hours: float = Field(default=4.0, alias='SESSION_TTL_HOURS')
    rate_limit_requests: int = Field(default=10, alias='RATE_LIMIT_REQUESTS')
    rate_limit_window_seconds: float = Field(default=60.0, alias='RATE_LIMIT_WINDOW_SECONDS')

    class Config:
        env_file = ".env"
        case_sensitive = False
        populate_by_name = True  # Allow both field name and alias
        extra = "ignore"  # Allow extra fields without validation error

    def __init__(self, **data):
        super().__init__(**data)
        # Check for service-specific port environment variables
        if os.getenv('ORCHESTRATOR_PORT'):
            self.service_port = int(os.getenv('ORCHESTRATOR_PORT'))
        elif os.getenv('SERVICE_PORT'):
            self.service_port = int(os.getenv('SERVICE_PORT'))


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the current settings instance."""
    return settings


def debug_settings():
    """Log the current settings."""
    settings = get_settings()
    logger.info("🔍 Current Settings:")
    logger.info(f"  Service Name: {settings.service_name}")
    logger.info(f"  Service Port: {settings.service_port}")
    logger.info(f"  Debug Mode: {settings.debug}")
    logger.info(f"  Log Level: {settings.log_level}")
    logger.info(f"  Slide Services: {settings.slide_services_url}")
    logger.info(f"  Exploratory Interval: {settings.exploratory_interval_seconds}s")
    logger.info(f"  Fallback Slides: {'✅ On' if settings.synthesize_fallback_slide else '❌ Off'}")
