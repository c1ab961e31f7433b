"""
Health Check Handler

Provides health status for monitoring and load balancing.
Verifies the bot channel configuration is present.
"""

import os
from typing import Any, Dict

from aws_lambda_powertools import Logger, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from utils.response_builder import build_response

logger = Logger()
tracer = Tracer()

REQUIRED_ENV_VARS = [
    "BOT_CHANNEL_URL",
    "BOT_CHANNEL_SECRET_NAME",
]


@logger.inject_lambda_context
@tracer.capture_lambda_handler
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda handler for health check endpoint.

    Args:
        event: API Gateway event
        context: Lambda context object

    Returns:
        API Gateway response with health status
    """
    logger.info("Processing health check request")

    health_status = {
        "status": "healthy",
        "service": "bot-webhook-integration",
        "environment": os.environ.get("ENVIRONMENT", "unknown"),
        "version": "1.0.0",
        "checks": {},
    }

    missing = [var for var in REQUIRED_ENV_VARS if not os.environ.get(var)]
    health_status["checks"]["environment"] = "fail" if missing else "pass"

    if missing:
        health_status["status"] = "degraded"
        health_status["missing"] = missing
        logger.warning("Health check degraded", extra={"missing": missing})
        return build_response(status_code=503, body=health_status)

    logger.info("Health check passed")
    return build_response(status_code=200, body=health_status)
