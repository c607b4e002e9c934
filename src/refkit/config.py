"""Configuration for the bundled conversation reference stores."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, SecretStr, field_validator


def _require(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name, "").strip()
    if not value:
        raise ValueError(f"Environment variable {name} is not set")
    return value


def _non_empty(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


class BlobStoreConfig(BaseModel):
    """Azure Blob Storage store configuration.

    Attributes:
        connection_string: Storage account connection string.
        container_name: Container holding one blob per conversation reference.
            Created on first use if it does not exist.
    """

    connection_string: SecretStr
    container_name: str

    @field_validator("container_name")
    @classmethod
    def _check_container(cls, v: str) -> str:
        return _non_empty(v)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BlobStoreConfig:
        """Read ``BLOB_CONNECTION_STRING`` and ``BLOB_CONTAINER_NAME``."""
        env = os.environ if environ is None else environ
        return cls(
            connection_string=_require(env, "BLOB_CONNECTION_STRING"),
            container_name=_require(env, "BLOB_CONTAINER_NAME"),
        )


class CosmosStoreConfig(BaseModel):
    """Azure Cosmos DB store configuration.

    The database and container are created on first use if they do not
    exist. The container is partitioned on ``/id``.
    """

    connection_string: SecretStr
    database_name: str
    container_name: str

    @field_validator("database_name", "container_name")
    @classmethod
    def _check_names(cls, v: str) -> str:
        return _non_empty(v)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CosmosStoreConfig:
        """Read ``COSMOS_CONNECTION_STRING``, ``COSMOS_DATABASE_NAME`` and
        ``COSMOS_CONTAINER_NAME``."""
        env = os.environ if environ is None else environ
        return cls(
            connection_string=_require(env, "COSMOS_CONNECTION_STRING"),
            database_name=_require(env, "COSMOS_DATABASE_NAME"),
            container_name=_require(env, "COSMOS_CONTAINER_NAME"),
        )
