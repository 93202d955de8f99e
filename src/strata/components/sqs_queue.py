"""Message queue."""
from __future__ import annotations

from strata.core.components.base import BaseComponent
from strata.core.registries.components import ComponentDescriptor
from strata.core.schemas.validation import load_schema

TYPE = "sqs-queue"
QUEUE_CAPABILITY = "queue:sqs"


class SqsQueue(BaseComponent):
    component_type = TYPE

    def define_capabilities(self) -> None:
        fifo = bool(self.config.get("fifo", False))
        queue = self.config.get("queueName") or self.resource_name()
        if fifo and not queue.endswith(".fifo"):
            queue = f"{queue}.fifo"
        region = self.context.region or ""
        account = self.context.account_id or ""
        self.register_capability(
            QUEUE_CAPABILITY,
            {
                "queueName": queue,
                "queueArn": self.arn("sqs", queue),
                "queueUrl": f"https://sqs.{region}.amazonaws.com/{account}/{queue}",
                "fifo": fifo,
            },
            ["send", "receive"],
        )


DESCRIPTOR = ComponentDescriptor(
    type=TYPE,
    factory=SqsQueue,
    config_schema=load_schema("components/sqs-queue"),
    provided_capabilities=(QUEUE_CAPABILITY,),
    fallback_config={"fifo": False, "visibilityTimeoutSeconds": 30},
    description="Message queue with optional FIFO ordering and dead-letter queue",
)
