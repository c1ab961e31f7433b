"""
Bot Webhook Handler

Receives messages posted by the bot to the webhook channel.
The raw body is captured before parsing so the signature can be verified
over the exact bytes the bot signed.
"""

import base64
import binascii
import json
from typing import Any, Dict, Tuple

import pydantic
from aws_lambda_powertools import Logger, Tracer, Metrics
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from adapters.bot_client import BotMessage
from adapters.secrets import SecretsError, get_secrets_provider
from config.settings import get_settings
from utils.exceptions import (
    AuthenticationError,
    ConfigurationError,
    IntegrationError,
    ValidationError,
)
from utils.response_builder import build_error_response, build_response
from utils.webhook_verification import (
    capture_raw_body,
    extract_signature,
    get_header,
    read_raw_body,
    verify_inbound_signature,
)

logger = Logger()
tracer = Tracer()
metrics = Metrics()

DEFAULT_ENCODING = "utf-8"


def _declared_encoding(headers: Dict[str, str]) -> str:
    """Return the charset declared in the Content-Type header, if any."""
    content_type = get_header(headers, "Content-Type")
    for param in content_type.split(";")[1:]:
        name, _, value = param.strip().partition("=")
        if name.lower() == "charset" and value:
            return value.strip('"').lower()
    return DEFAULT_ENCODING


def decode_event_body(event: Dict[str, Any]) -> Tuple[bytes, str]:
    """
    Recover the raw request body bytes from an API Gateway event.

    Args:
        event: API Gateway proxy event

    Returns:
        Tuple of (raw body bytes, declared encoding)

    Raises:
        ValidationError: If the body cannot be decoded
    """
    body = event.get("body") or ""
    encoding = _declared_encoding(event.get("headers") or {})

    try:
        if event.get("isBase64Encoded"):
            return base64.b64decode(body, validate=True), encoding
        return body.encode(encoding), encoding
    except (binascii.Error, LookupError, UnicodeEncodeError) as e:
        raise ValidationError(f"Could not decode request body: {str(e)}", field="body")


def parse_bot_message(raw_body: bytes, encoding: str) -> BotMessage:
    """
    Parse a verified raw body into a BotMessage.

    Raises:
        ValidationError: If the body is not a valid bot message
    """
    try:
        data = json.loads(raw_body.decode(encoding or DEFAULT_ENCODING))
    except (UnicodeDecodeError, LookupError, json.JSONDecodeError) as e:
        raise ValidationError(f"Request body is not valid JSON: {str(e)}", field="body")

    try:
        return BotMessage.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid bot message: {str(e)}", details={"errors": e.errors()})


@logger.inject_lambda_context
@tracer.capture_lambda_handler
@metrics.log_metrics
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda handler for messages received from the bot.

    Args:
        event: API Gateway event containing the signed bot message
        context: Lambda context object

    Returns:
        API Gateway response with status code and body
    """
    try:
        logger.info("Received bot webhook event")
        settings = get_settings()

        raw_body, encoding = decode_event_body(event)
        capture_raw_body(event, raw_body, encoding)

        if not settings.bot_channel_secret_name:
            raise ConfigurationError("BOT_CHANNEL_SECRET_NAME environment variable not set")

        channel_secret = get_secrets_provider().get_secret(settings.bot_channel_secret_name)
        signature = extract_signature(event.get("headers"), settings.webhook_signature_header)

        captured_body, captured_encoding = read_raw_body(event)
        if not verify_inbound_signature(signature, captured_body, channel_secret, captured_encoding):
            raise AuthenticationError("Invalid or missing webhook signature")

        message = parse_bot_message(captured_body, captured_encoding)

        metrics.add_metric(name="BotMessageReceived", unit=MetricUnit.Count, value=1)
        logger.info("Verified bot message", extra={"user_id": message.user_id})

        return build_response(
            status_code=200,
            body={
                "message": "Webhook processed successfully",
                "userId": message.user_id,
            },
        )

    except AuthenticationError as e:
        metrics.add_metric(name="BotMessageRejected", unit=MetricUnit.Count, value=1)
        return build_error_response(401, str(e), error_code="INVALID_SIGNATURE")

    except ValidationError as e:
        logger.error("Validation error", extra={"error": str(e)})
        metrics.add_metric(name="BotMessageValidationError", unit=MetricUnit.Count, value=1)
        return build_error_response(400, str(e), error_code="INVALID_MESSAGE")

    except (ConfigurationError, SecretsError) as e:
        logger.error("Configuration error", extra={"error": str(e)})
        return build_error_response(500, "Webhook is not configured", error_code="CONFIGURATION_ERROR")

    except IntegrationError as e:
        logger.error("Integration error", extra={"error": str(e)})
        return build_error_response(500, "Integration error occurred")

    except Exception:
        logger.exception("Unexpected error processing bot webhook")
        return build_error_response(500, "Internal server error")
