"""
Bot Channel Client

Adapter for sending signed messages to a bot webhook channel.
Handles message construction, signing, delivery and error reporting.
"""

import json
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

import pydantic
import requests
from aws_lambda_powertools import Logger
from pydantic import BaseModel, ConfigDict, Field
from pydantic_core import PydanticSerializationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from adapters.secrets import SecretsProvider, get_secrets_provider
from config.settings import Settings
from utils.exceptions import ConfigurationError, ValidationError, WebhookDeliveryError
from utils.webhook_verification import SIGNATURE_HEADER, build_signature_header

logger = Logger(child=True)

CONTENT_TYPE = "application/json; charset=utf-8"
DEFAULT_TIMEOUT = 60
DEFAULT_MAX_REDIRECTS = 10

DeliveryCallback = Callable[[Optional[BaseException]], Any]


class BotMessage(BaseModel):
    """
    Message exchanged with the bot over the webhook channel.

    Carries the sender and the message payload. Any additional properties
    (for example a user profile) are kept as extra fields and serialized
    alongside them.
    """

    user_id: str = Field(alias="userId")
    message_payload: Any = Field(alias="messagePayload")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_bytes(self) -> bytes:
        """Serialize to the compact UTF-8 JSON bytes that are signed and sent."""
        data = self.model_dump(mode="json", by_alias=True)
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def build_bot_message(
    user_id: str, message: Any, additional_properties: Optional[Dict[str, Any]] = None
) -> BotMessage:
    """
    Build an outbound message.

    Additional properties are merged after userId and messagePayload, so they
    take precedence on key collisions.

    Raises:
        ValidationError: If the message cannot be built
    """
    data = {"userId": user_id, "messagePayload": message}
    if additional_properties:
        data.update(additional_properties)

    try:
        return BotMessage.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid bot message: {str(e)}", details={"errors": e.errors()})


class _MethodPreservingSession(requests.Session):
    """Session that keeps the original HTTP method when following redirects."""

    def rebuild_method(self, prepared_request, response):
        pass


class BotChannelClient:
    """
    Client for delivering signed messages to a bot webhook channel.

    Deliveries run on a thread pool and complete through a Future; each call
    makes exactly one attempt.
    """

    def __init__(
        self,
        channel_url: str,
        channel_secret: str,
        timeout: int = DEFAULT_TIMEOUT,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        max_workers: int = 4,
        signature_header: str = SIGNATURE_HEADER,
    ):
        """
        Initialize bot channel client.

        Args:
            channel_url: Webhook URL of the bot channel
            channel_secret: Secret key of the channel, used for message signatures
            timeout: HTTP request timeout in seconds
            max_redirects: Maximum number of redirects to follow
            max_workers: Number of delivery threads
            signature_header: Name of the signature header
        """
        if not channel_url:
            raise ConfigurationError("Bot channel URL not set")
        if channel_secret is None:
            raise ConfigurationError("Bot channel secret not set")

        self.channel_url = channel_url
        self.channel_secret = channel_secret
        self.timeout = timeout
        self.signature_header = signature_header
        self.session = self._create_session(max_redirects)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="bot-delivery"
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, secrets_provider: Optional[SecretsProvider] = None
    ) -> "BotChannelClient":
        """
        Create a client from application settings.

        Args:
            settings: Application settings
            secrets_provider: Provider used to look up the channel secret

        Returns:
            Configured BotChannelClient

        Raises:
            ConfigurationError: If the channel URL or secret name is missing
            SecretsError: If the channel secret cannot be retrieved
        """
        if not settings.bot_channel_url:
            raise ConfigurationError("BOT_CHANNEL_URL environment variable not set")
        if not settings.bot_channel_secret_name:
            raise ConfigurationError("BOT_CHANNEL_SECRET_NAME environment variable not set")

        provider = secrets_provider or get_secrets_provider()
        channel_secret = provider.get_secret(settings.bot_channel_secret_name)

        return cls(
            channel_url=settings.bot_channel_url,
            channel_secret=channel_secret,
            timeout=settings.request_timeout,
            max_redirects=settings.max_redirects,
            max_workers=settings.delivery_workers,
            signature_header=settings.webhook_signature_header,
        )

    def _create_session(self, max_redirects: int) -> requests.Session:
        """
        Create requests session without retries that preserves methods on redirect.

        Returns:
            Configured requests.Session
        """
        session = _MethodPreservingSession()
        session.max_redirects = max_redirects

        # Single attempt per delivery; callers own retry policy
        adapter = HTTPAdapter(max_retries=Retry(total=0, read=False))
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        return session

    def send_message(
        self,
        user_id: str,
        message: Any,
        additional_properties: Optional[Dict[str, Any]] = None,
        callback: Optional[DeliveryCallback] = None,
    ) -> Future:
        """
        Send a signed message to the bot channel.

        Never raises; failures are reported through the returned Future and,
        if given, the callback.

        Args:
            user_id: Sender of the message
            message: Message payload
            additional_properties: Extra top-level properties, such as a profile
            callback: Called exactly once with None on success or the error

        Returns:
            Future resolving to None, or raising WebhookDeliveryError/ValidationError
        """
        try:
            future = self._executor.submit(self._send, user_id, message, additional_properties)
        except RuntimeError as e:
            future = Future()
            future.set_exception(WebhookDeliveryError(f"Bot channel client is closed: {str(e)}"))

        if callback is not None:
            future.add_done_callback(lambda f: callback(_future_error(f)))

        return future

    def _send(
        self, user_id: str, message: Any, additional_properties: Optional[Dict[str, Any]]
    ) -> None:
        outbound = build_bot_message(user_id, message, additional_properties)
        try:
            body = outbound.to_bytes()
        except (TypeError, ValueError, PydanticSerializationError) as e:
            raise ValidationError(f"Message is not JSON serializable: {str(e)}", field="messagePayload")

        self.deliver(body)
        logger.info("Delivered message to bot channel", extra={"user_id": user_id})

    def deliver(self, body: bytes) -> requests.Response:
        """
        POST an already serialized message body with its signature.

        Args:
            body: UTF-8 JSON bytes, signed and sent as is

        Returns:
            Response from the bot channel

        Raises:
            WebhookDeliveryError: If the request fails or returns a non-2xx status
        """
        headers = {
            "Content-Type": CONTENT_TYPE,
            self.signature_header: build_signature_header(body, self.channel_secret),
        }

        response = None
        try:
            response = self.session.post(
                self.channel_url,
                data=body,
                headers=headers,
                timeout=self.timeout,
                allow_redirects=True,
            )
            response.raise_for_status()
            return response

        except requests.RequestException as e:
            if e.response is not None:
                response = e.response
            status_code = response.status_code if response is not None else None
            response_body = response.text if response is not None else None
            logger.error(
                "Failed to deliver message to bot channel",
                extra={
                    "status_code": status_code,
                    "response_body": response_body,
                    "error": str(e),
                },
            )
            raise WebhookDeliveryError(
                f"Delivery to bot channel failed: {str(e)}",
                status_code=status_code,
                response_body=response_body,
            ) from e

    def close(self, wait: bool = True) -> None:
        """Shut down the delivery pool; the session is closed only when waiting."""
        self._executor.shutdown(wait=wait)
        if wait:
            self.session.close()

    def __enter__(self) -> "BotChannelClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _future_error(future: Future) -> Optional[BaseException]:
    if future.cancelled():
        return CancelledError()
    return future.exception()


def message_to_bot_with_properties(
    channel_url: str,
    channel_secret: str,
    user_id: str,
    message: Any,
    additional_properties: Optional[Dict[str, Any]] = None,
    callback: Optional[DeliveryCallback] = None,
) -> Future:
    """
    Send a signed message with additional properties using a one-shot client.

    A common use is adding a "profile" property describing the user.

    Returns:
        Future for the delivery; see BotChannelClient.send_message
    """
    try:
        client = BotChannelClient(channel_url, channel_secret, max_workers=1)
    except ConfigurationError as e:
        future = Future()
        future.set_exception(e)
        if callback is not None:
            future.add_done_callback(lambda f: callback(_future_error(f)))
        return future

    future = client.send_message(user_id, message, additional_properties, callback)
    future.add_done_callback(lambda _: client.session.close())
    client.close(wait=False)
    return future


def message_to_bot(
    channel_url: str,
    channel_secret: str,
    user_id: str,
    message: Any,
    callback: Optional[DeliveryCallback] = None,
) -> Future:
    """Send a signed message to the bot channel using a one-shot client."""
    return message_to_bot_with_properties(
        channel_url, channel_secret, user_id, message, None, callback
    )
