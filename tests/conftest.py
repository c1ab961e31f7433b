"""
Shared pytest fixtures
"""

import os
from dataclasses import dataclass
from typing import Optional

import pytest

# Powertools reads these when handler modules are imported
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "bot-webhook-integration")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "BotWebhookIntegration")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")


@dataclass
class FakeLambdaContext:
    """Minimal stand-in for the Lambda runtime context."""

    function_name: str = "bot-webhook"
    function_version: str = "$LATEST"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:bot-webhook"
    aws_request_id: str = "c6af9ac6-7b61-11e6-9a41-93e812345678"
    log_group_name: str = "/aws/lambda/bot-webhook"
    log_stream_name: str = "2026/10/18/[$LATEST]abcdef"
    tenant_id: Optional[str] = None


@pytest.fixture
def lambda_context():
    """Create a fake Lambda context."""
    return FakeLambdaContext()


@pytest.fixture(autouse=True)
def clean_bot_env(monkeypatch):
    """Keep bot channel configuration from leaking in from the environment."""
    for var in [
        "BOT_CHANNEL_URL",
        "BOT_CHANNEL_SECRET_NAME",
        "BOT_CHANNEL_SECRET",
        "WEBHOOK_SECRET",
        "WEBHOOK_SIGNATURE_HEADER",
        "REQUEST_TIMEOUT",
        "MAX_REDIRECTS",
        "DELIVERY_WORKERS",
        "LOCAL_DEV",
    ]:
        monkeypatch.delenv(var, raising=False)
