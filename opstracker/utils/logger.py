import logging
from opstracker.config import settings

def setup_logger():
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    return logging.getLogger("opstracker")

logger = setup_logger()
