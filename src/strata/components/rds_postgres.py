"""Managed PostgreSQL database instance."""
from __future__ import annotations

from strata.core.components.base import BaseComponent
from strata.core.registries.components import ComponentDescriptor
from strata.core.schemas.validation import load_schema

TYPE = "rds-postgres"
DATABASE_CAPABILITY = "database:postgres"
POSTGRES_PORT = 5432


class RdsPostgres(BaseComponent):
    component_type = TYPE

    def define_capabilities(self) -> None:
        identifier = self.resource_name()
        region = self.context.region or "local"
        self.register_capability(
            DATABASE_CAPABILITY,
            {
                "instanceIdentifier": identifier,
                "endpoint": f"{identifier}.{region}.rds.amazonaws.com",
                "port": POSTGRES_PORT,
                "databaseName": self.config.get("databaseName") or self.name.replace("-", "_"),
                "secretName": f"{identifier}/credentials",
                "instanceArn": self.arn("rds", f"db:{identifier}"),
                "multiAZ": self.config.get("multiAZ", False),
            },
            ["read", "read-write", "admin"],
        )


DESCRIPTOR = ComponentDescriptor(
    type=TYPE,
    factory=RdsPostgres,
    config_schema=load_schema("components/rds-postgres"),
    provided_capabilities=(DATABASE_CAPABILITY,),
    fallback_config={
        "engine": "postgres",
        "instanceClass": "db.t3.micro",
        "allocatedStorage": 20,
        "storageType": "gp3",
        "storageEncrypted": False,
        "backupRetentionPeriod": 7,
        "multiAZ": False,
    },
    description="Managed PostgreSQL instance",
)
