import logging

from moodflix.main import app

# Root logging for serverless logs; module loggers propagate here.
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

logger.info("MoodFlix serverless entrypoint loaded")

__all__ = ["app"]
