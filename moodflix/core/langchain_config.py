"""Export LangSmith tracing variables so LangChain picks them up."""

from __future__ import annotations

import logging
import os

from moodflix.core.config import Settings

logger = logging.getLogger(__name__)


def configure_langchain_env(settings: Settings) -> bool:
    """Set LangSmith env vars from settings; returns whether tracing is on.

    Values already present in the process environment win over settings so a
    deployment can switch tracing off without touching `.env`.
    """

    if not settings.langchain_tracing_v2:
        return False
    os.environ.setdefault("LANGCHAIN_TRACING_V2", "true")
    if settings.langchain_api_key:
        os.environ.setdefault("LANGCHAIN_API_KEY", settings.langchain_api_key)
    if settings.langchain_project:
        os.environ.setdefault("LANGCHAIN_PROJECT", settings.langchain_project)
    logger.info("LangSmith tracing enabled (project=%s)", settings.langchain_project)
    return True
