# start_server.py
# Run the CashAI backend under uvicorn with host/port from the environment

import logging

import uvicorn

from cashai.config import settings

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def main():
    """Start the server; auto-reload only outside production."""
    logger.info(f"🚀 Starting {settings.PROJECT_NAME} {settings.VERSION}")
    logger.info(f"🌐 Listening on http://{settings.HOST}:{settings.PORT}")
    logger.info(f"🔧 Environment: {settings.ENVIRONMENT}, Plaid: {settings.PLAID_ENV}")
    logger.info(f"📊 Dashboard: http://localhost:{settings.PORT}/dashboard")

    uvicorn.run(
        "cashai.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=not settings.is_production,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
