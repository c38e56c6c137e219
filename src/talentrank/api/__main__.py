"""
Main entry point for the TalentRank API when run with python -m

This allows the API to be run with:
    python -m talentrank.api
"""

import uvicorn

from talentrank.api import ServiceContainer, create_app
from talentrank.core.secure_config import Settings

if __name__ == "__main__":
    settings = Settings()
    app = create_app(ServiceContainer.from_settings(settings))
    uvicorn.run(
        app,
        host=settings.get("api.host", "127.0.0.1"),
        port=settings.get("api.port", 8000),
        log_level=str(settings.get("logging.level", "INFO")).lower(),
    )
