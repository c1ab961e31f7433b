"""
Bot Outbound Handler

Sends a signed message to the bot webhook channel on behalf of a user.
Invoked directly (or from a queue/state machine) with the message to send.
"""

from typing import Any, Dict

from aws_lambda_powertools import Logger, Tracer, Metrics
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from adapters.bot_client import BotChannelClient
from adapters.secrets import SecretsError
from config.settings import get_settings
from utils.exceptions import (
    ConfigurationError,
    IntegrationError,
    ValidationError,
    WebhookDeliveryError,
)
from utils.response_builder import build_error_response, build_response

logger = Logger()
tracer = Tracer()
metrics = Metrics()


def validate_outbound_event(event: Dict[str, Any]) -> None:
    """
    Check the invocation event carries a message to send.

    Raises:
        ValidationError: If a required field is missing or malformed
    """
    if not isinstance(event, dict):
        raise ValidationError("Expected an object event")

    if not event.get("userId"):
        raise ValidationError("Missing required field: userId", field="userId")

    if "messagePayload" not in event:
        raise ValidationError("Missing required field: messagePayload", field="messagePayload")

    properties = event.get("properties")
    if properties is not None and not isinstance(properties, dict):
        raise ValidationError("properties must be an object", field="properties")


@logger.inject_lambda_context
@tracer.capture_lambda_handler
@metrics.log_metrics
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda handler for sending a message to the bot.

    Event format:
        {"userId": "...", "messagePayload": {...}, "properties": {"profile": {...}}}

    Args:
        event: Invocation event
        context: Lambda context object

    Returns:
        Response with status code and body
    """
    try:
        validate_outbound_event(event)
        user_id = event["userId"]

        logger.info("Sending message to bot", extra={"user_id": user_id})

        with BotChannelClient.from_settings(get_settings()) as client:
            future = client.send_message(
                user_id, event["messagePayload"], event.get("properties")
            )
            future.result()

        metrics.add_metric(name="BotMessageDelivered", unit=MetricUnit.Count, value=1)

        return build_response(
            status_code=200,
            body={"message": "Message delivered", "userId": user_id},
        )

    except ValidationError as e:
        logger.error("Validation error", extra={"error": str(e)})
        return build_error_response(400, str(e), error_code="INVALID_MESSAGE")

    except WebhookDeliveryError as e:
        metrics.add_metric(name="BotMessageDeliveryFailed", unit=MetricUnit.Count, value=1)
        return build_error_response(
            502,
            "Bot channel delivery failed",
            error_code="DELIVERY_FAILED",
            details={"statusCode": e.status_code},
        )

    except (ConfigurationError, SecretsError) as e:
        logger.error("Configuration error", extra={"error": str(e)})
        return build_error_response(500, "Bot channel is not configured", error_code="CONFIGURATION_ERROR")

    except IntegrationError as e:
        logger.error("Integration error", extra={"error": str(e)})
        return build_error_response(500, "Integration error occurred")

    except Exception:
        logger.exception("Unexpected error sending bot message")
        return build_error_response(500, "Internal server error")
