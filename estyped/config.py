"""
estyped Configuration

We read configuration from 2 sources, in order of precedence (higher is more priority)
- Environment variables (ESTYPED_HOST, ESTYPED_PASSWORD, ...)
- A .env file, either in the current working directory or in a location specified
  by the ESTYPED_ENV_FILE environment variable

A SearchClient can also be given a Settings object directly, in which case the environment is not read.
"""

import functools
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

from class_doc import extract_docs_from_cls_obj
from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "estyped_"


class TransportOptions(str, Enum):
    #: plain http(s) requests with the requests library
    requests = "requests"

    #: requests through the transport of the official elasticsearch client
    elasticsearch = "elasticsearch"


# Set the __doc__ attribute of each TransportOptions enum member using extract_docs_from_cls_obj
for field, doc in extract_docs_from_cls_obj(TransportOptions).items():
    TransportOptions[field].__doc__ = "\n".join(doc)


class Settings(BaseSettings):
    env_file: Annotated[
        Path,
        Field(
            description="Location of a .env file (if used) relative to working directory",
        ),
    ] = Path(".env")

    host: Annotated[
        str | None,
        Field(
            description=(
                "Search server to connect to. "
                "Default: https://localhost:9200 if password is set, http://localhost:9200 otherwise"
            )
        ),
    ] = None

    username: Annotated[
        str,
        Field(
            description="User name for basic authentication (only used if password is set)",
        ),
    ] = "elastic"

    password: Annotated[
        str | None,
        Field(
            description="Password for basic authentication. If not set, requests are sent without authorization",
        ),
    ] = None

    verify_ssl: Annotated[
        bool | None,
        Field(
            description="Verify the certificate of the server. Default: True unless host is localhost",
        ),
    ] = None

    timeout: Annotated[
        float,
        Field(
            description="Timeout in seconds for a single request",
            gt=0,
        ),
    ] = 10.0

    transport: Annotated[
        TransportOptions,
        Field(description="Which library to send requests with"),
    ] = TransportOptions.requests

    enable_keyed_cache: Annotated[
        bool,
        Field(
            description="Create the keyed cache index on first use",
        ),
    ] = False

    keyed_cache_index_name: Annotated[
        str,
        Field(
            description="Index to store the keyed cache in",
        ),
    ] = "estyped_keyed_cache"

    @model_validator(mode="after")
    def set_ssl(self: Any) -> "Settings":
        if not self.host:
            self.host = ("https" if self.password else "http") + "://localhost:9200"
        self.host = self.host.rstrip("/")
        if self.verify_ssl is None:
            self.verify_ssl = self.host not in {
                "http://localhost:9200",
                "https://localhost:9200",
            }
        return self

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)


@functools.lru_cache()
def get_settings() -> Settings:
    # Read the location of the .env file first, then let the .env file fill in what the environment does not set
    temp = Settings()
    load_dotenv(temp.env_file, override=False)
    return Settings()


if __name__ == "__main__":
    # Echo the settings
    for k, v in get_settings().model_dump().items():
        if k == "password" and v:
            v = "********"
        print(f"{ENV_PREFIX.upper()}{k.upper()}={v}")
