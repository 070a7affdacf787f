"""
API Server Runner

Entry point for running the FastAPI server: loads ``.env``, applies the
chosen environment, reports which provider credentials are configured,
and starts uvicorn.
"""

import argparse
import logging
import os
import sys
import traceback

import uvicorn
from dotenv import load_dotenv

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("api_runner")

PROVIDER_SETTINGS = {
    "Gmail triage": ["GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "GOOGLE_REFRESH_TOKEN"],
    "AI classification and composition": ["GROQ_API_KEY"],
    "User webhooks": ["SIGNING_SECRET"],
}


def parse_arguments():
    """Parse command line arguments for the API server."""
    parser = argparse.ArgumentParser(description="Run the Inbox Desk API server")

    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind the server to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind the server to (default: 8000)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development"
    )
    parser.add_argument(
        "--env",
        type=str,
        choices=["development", "testing", "production"],
        default="development",
        help="Environment to run in (default: development)"
    )

    return parser.parse_args()


def setup_environment(env: str) -> None:
    """Set ENVIRONMENT and DEBUG for the settings loader."""
    os.environ["ENVIRONMENT"] = env
    os.environ["DEBUG"] = "true" if env in ["development", "testing"] else "false"
    os.makedirs("data", exist_ok=True)


def report_provider_settings() -> None:
    """Log which provider-backed features are configured. Values are never logged."""
    for feature, names in PROVIDER_SETTINGS.items():
        missing = [name for name in names if not os.environ.get(name)]
        if missing:
            logger.warning(f"{feature} disabled until configured: missing {', '.join(missing)}")
        else:
            logger.info(f"{feature} configured")


def main():
    """Load configuration and run the server."""
    args = parse_arguments()

    load_dotenv()
    setup_environment(args.env)
    report_provider_settings()

    logger.info(f"Starting API server in {args.env} mode")
    logger.info(f"Server will be available at http://{args.host}:{args.port}")
    if args.env != "production":
        logger.info(f"API documentation will be available at http://{args.host}:{args.port}/docs")

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info" if args.env == "production" else "debug"
    )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Error running server: {str(e)}")
        logger.error(traceback.format_exc())
        sys.exit(1)
