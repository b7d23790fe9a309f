"""Main entry point for the care tracker API server"""
import logging
import uvicorn
from care_tracker.config import validate_config, LOG_LEVEL, API_HOST, API_PORT
from care_tracker.api.server import create_api_application
from care_tracker.exceptions import ConfigurationError

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
)

logger = logging.getLogger(__name__)


def main() -> None:
    """Main application entry point"""
    logger.info("Validating configuration...")
    try:
        validate_config()
    except ValueError as e:
        raise ConfigurationError(str(e), operation="startup", cause=e) from e

    app = create_api_application()

    logger.info(f"Starting API server on {API_HOST}:{API_PORT}")
    uvicorn.run(app, host=API_HOST, port=API_PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
