"""LangSmith tracing switch shared by the CLI and the API."""
import logging
import os

from archie.core.config import Settings

logger = logging.getLogger(__name__)


def configure_tracing(app_settings: Settings) -> bool:
    """
    Export LangSmith settings to the environment read by ``langsmith.traceable``.

    Returns:
        True if tracing was enabled
    """
    if app_settings.LANGSMITH_TRACING:
        os.environ['LANGSMITH_TRACING'] = 'true'
        os.environ['LANGSMITH_API_KEY'] = app_settings.LANGSMITH_API_KEY
        os.environ['LANGSMITH_PROJECT'] = app_settings.LANGSMITH_PROJECT
        if app_settings.LANGSMITH_ENDPOINT:
            os.environ['LANGSMITH_ENDPOINT'] = app_settings.LANGSMITH_ENDPOINT
        logger.info(f"LangSmith tracing enabled (project: {app_settings.LANGSMITH_PROJECT})")
        return True

    os.environ['LANGSMITH_TRACING'] = 'false'
    logger.debug("LangSmith tracing disabled")
    return False
