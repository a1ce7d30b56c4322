#!/usr/bin/env python3
"""
Startup script for the Narration Orchestrator Service.
Handles environment setup and service startup.
"""

import shutil
import sys
from pathlib import Path

import uvicorn

SERVICES_DIR = Path(__file__).resolve().parent


def check_environment():
    """Check if the environment is properly set up."""
    print("🔍 Checking environment...")

    if not (hasattr(sys, 'base_prefix') and sys.base_prefix != sys.prefix):
        print("⚠️  Warning: Not running in a virtual environment")

    env_file = SERVICES_DIR / ".env"
    if not env_file.exists():
        example_file = SERVICES_DIR / "env.example"
        if not example_file.exists():
            print("❌ env.example not found!")
            return False
        shutil.copy2(example_file, env_file)
        print("✅ .env file created from env.example")

    return True


def start_service():
    """Start the orchestrator with uvicorn."""
    from shared.config import debug_settings, get_settings

    settings = get_settings()
    debug_settings()

    print("\n" + "=" * 50)
    print("🎯 Service starting at:")
    print(f"   http://localhost:{settings.service_port}")
    print(f"   Health check: http://localhost:{settings.service_port}/health")
    print(f"   Collaborators: {settings.slide_services_url}")
    print("=" * 50 + "\n")

    uvicorn.run(
        "narration_orchestrator.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.service_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


def main():
    print("🌟 Narration Orchestrator Service Startup")
    print("=" * 50)

    if not check_environment():
        print("❌ Environment check failed!")
        return

    start_service()


if __name__ == "__main__":
    main()
