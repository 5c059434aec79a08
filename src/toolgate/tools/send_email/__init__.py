"""
send_email - Mock email delivery

Nothing is sent. The tool validates the envelope, logs it and returns a
generated message id.
"""

import logging
from typing import Any
from uuid import uuid4

from toolgate.core.timestamps import utc_now_iso
from toolgate.tools.base import BaseTool, LocalToolDefinition

logger = logging.getLogger(__name__)

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# Checked with jsonschema (Draft 7) before the tool runs
SEND_EMAIL_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "to": {"type": "string", "pattern": EMAIL_PATTERN},
        "subject": {"type": "string", "minLength": 1, "maxLength": 255},
        "body": {"type": "string"},
        "cc": {"type": "array", "items": {"type": "string", "pattern": EMAIL_PATTERN}},
    },
    "required": ["to", "subject", "body"],
}


class SendEmailTool(BaseTool):

    @property
    def definition(self) -> LocalToolDefinition:
        return LocalToolDefinition(
            name="send_email",
            description="Send an email (mock: nothing is delivered)",
            input_schema={
                "type": "object",
                "properties": {
                    "to": {"type": "string", "description": "Recipient address"},
                    "subject": {"type": "string", "description": "Subject line"},
                    "body": {"type": "string", "description": "Plain-text body"},
                    "cc": {"type": "array", "description": "Additional recipients", "default": []},
                },
                "required": ["to", "subject", "body"],
            },
            structured_schema=SEND_EMAIL_SCHEMA,
            executor=self.execute,
        )

    async def execute(self, parameters: dict[str, Any]) -> dict[str, Any]:
        message_id = f"<{uuid4().hex}@toolgate.mock>"
        recipients = [parameters["to"], *parameters.get("cc", [])]
        logger.info(f"Mock email {message_id} to {recipients}: {parameters['subject']!r}")

        return {
            "success": True,
            "mock": True,
            "messageId": message_id,
            "recipients": recipients,
            "subject": parameters["subject"],
            "sentAt": utc_now_iso(),
        }


__all__ = ["SEND_EMAIL_SCHEMA", "SendEmailTool"]
