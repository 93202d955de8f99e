"""Function worker."""
from __future__ import annotations

from strata.core.components.base import BaseComponent
from strata.core.registries.components import ComponentDescriptor
from strata.core.schemas.validation import load_schema

TYPE = "lambda-worker"
COMPUTE_CAPABILITY = "compute:lambda"


class LambdaWorker(BaseComponent):
    component_type = TYPE

    def define_capabilities(self) -> None:
        function = self.resource_name()
        self.register_capability(
            COMPUTE_CAPABILITY,
            {
                "functionName": function,
                "functionArn": self.arn("lambda", f"function:{function}"),
                "runtime": self.config.get("runtime"),
            },
            ["invoke"],
        )


DESCRIPTOR = ComponentDescriptor(
    type=TYPE,
    factory=LambdaWorker,
    config_schema=load_schema("components/lambda-worker"),
    provided_capabilities=(COMPUTE_CAPABILITY,),
    fallback_config={"runtime": "python3.12", "handler": "index.handler", "memorySize": 512},
    description="Function worker that consumes other components through bindings",
)
