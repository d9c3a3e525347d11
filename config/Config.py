# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-02
# Description: Config
# -----------------------------------------------------------------------------

import os
from dataclasses import dataclass
from dotenv import load_dotenv, find_dotenv

from query.Keyspace import Keyspace

# Load .env once globally
load_dotenv(find_dotenv(usecwd=True), override=True)


@dataclass(frozen=True)
class Config:
    # Couchbase cluster
    couchbase_connection_string: str
    couchbase_username: str
    couchbase_password: str

    # Keyspace holding the vector records
    couchbase_bucket: str
    couchbase_scope: str
    couchbase_collection: str

    # Azure OpenAI (for embeddings)
    openai_azure_api_key: str
    openai_azure_endpoint: str
    openai_azure_embed_deployment: str

    # ---- Single source of truth: field_name -> ENV VAR NAME ----
    ENV_VARS = {
        # Couchbase
        "couchbase_connection_string": "COUCHBASE_CONNECTION_STRING",  # e.g. couchbases://cb.example.com
        "couchbase_username": "COUCHBASE_USERNAME",
        "couchbase_password": "COUCHBASE_PASSWORD",

        # Keyspace
        "couchbase_bucket": "COUCHBASE_BUCKET",
        "couchbase_scope": "COUCHBASE_SCOPE",
        "couchbase_collection": "COUCHBASE_COLLECTION",

        # Azure OpenAI
        "openai_azure_api_key": "AZURE_OPENAI_API_KEY",
        "openai_azure_endpoint": "AZURE_OPENAI_ENDPOINT",
        "openai_azure_embed_deployment": "AZURE_OPENAI_EMBED_DEPLOYMENT",
    }

    # Convenient *groups* for use in tests / health checks
    COUCHBASE_ENV_VARS = (
        "COUCHBASE_CONNECTION_STRING",
        "COUCHBASE_USERNAME",
        "COUCHBASE_PASSWORD",
        "COUCHBASE_BUCKET",
        "COUCHBASE_SCOPE",
        "COUCHBASE_COLLECTION",
    )

    AZURE_OPENAI_ENV_VARS = (
        "AZURE_OPENAI_API_KEY",
        "AZURE_OPENAI_ENDPOINT",
        "AZURE_OPENAI_EMBED_DEPLOYMENT",
    )

    CONNECTION_SCHEMES = ("couchbase://", "couchbases://")

    @staticmethod
    def from_env() -> "Config":
        """Build Config object from environment variables."""
        kwargs = {
            field_name: os.getenv(env_name, "")
            for field_name, env_name in Config.ENV_VARS.items()
        }
        return Config(**kwargs)

    def __post_init__(self):
        """
        Fail fast if any required config is missing.
        """
        missing_fields = [k for k, v in self.__dict__.items() if not v]

        if missing_fields:
            missing_env_vars = [self.ENV_VARS[f] for f in missing_fields]
            raise ValueError(f"Missing required environment variables: {missing_env_vars}")

        if not self.couchbase_connection_string.startswith(self.CONNECTION_SCHEMES):
            raise ValueError(
                f"COUCHBASE_CONNECTION_STRING must start with one of {self.CONNECTION_SCHEMES}, "
                f"got {self.couchbase_connection_string!r}"
            )

    @property
    def keyspace(self) -> Keyspace:
        return Keyspace(self.couchbase_bucket, self.couchbase_scope, self.couchbase_collection)

    def summary(self) -> dict:
        """Return a safe, non-sensitive summary for logging."""
        return {
            "couchbase_connection_string": self.couchbase_connection_string,
            "couchbase_bucket": self.couchbase_bucket,
            "couchbase_scope": self.couchbase_scope,
            "couchbase_collection": self.couchbase_collection,
            "openai_azure_endpoint": self.openai_azure_endpoint,
            "openai_azure_embed_deployment": self.openai_azure_embed_deployment,
        }
