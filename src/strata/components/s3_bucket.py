"""Object storage bucket."""
from __future__ import annotations

from strata.core.components.base import BaseComponent
from strata.core.registries.components import ComponentDescriptor
from strata.core.schemas.validation import load_schema

TYPE = "s3-bucket"
STORAGE_CAPABILITY = "storage:s3-bucket"


class S3Bucket(BaseComponent):
    component_type = TYPE

    def define_capabilities(self) -> None:
        bucket = self.config.get("bucketName") or self.resource_name()
        encryption = self.config.lookup("encryption.type", "AES256")
        self.register_capability(
            STORAGE_CAPABILITY,
            {
                "bucketName": bucket,
                "bucketArn": self.arn("s3", bucket, regional=False),
                "encryption": encryption,
                "kmsKeyArn": self.config.lookup("encryption.kmsKeyArn"),
                "versioning": self.config.get("versioning", False),
                "objectLock": self.config.lookup("compliance.objectLock.enabled", False),
            },
            ["read", "write", "read-write"],
        )


DESCRIPTOR = ComponentDescriptor(
    type=TYPE,
    factory=S3Bucket,
    config_schema=load_schema("components/s3-bucket"),
    provided_capabilities=(STORAGE_CAPABILITY,),
    fallback_config={
        "versioning": False,
        "publicAccessBlock": True,
        "encryption": {"type": "AES256"},
    },
    description="Object storage bucket with encryption, versioning and optional object lock",
)
