import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigError


class DatabaseConfig(BaseModel):
    """Connection settings for the single PostgreSQL target.

    Attributes:
        host: Database host address
        port: Database port (default: 5432)
        database: Database name
        user: Database user
        password: Database password
        ssl: Use TLS for direct connections (certificate not verified)
        instance_connection_name: Cloud SQL ``project:region:instance``; when
            set, connections go through the Cloud SQL connector
        google_cloud_project: Quota project for the Cloud SQL connector
        ip_type: Cloud SQL IP type (PRIVATE, PUBLIC or PSC)
        max_connections: Pool size
        pool_timeout: Seconds to wait for a free pooled connection
    """

    host: str = Field(..., description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(..., description="Database name")
    user: str = Field(..., description="Database user")
    password: str = Field(..., description="Database password")
    ssl: bool = Field(default=False, description="Enable TLS for direct connections")
    instance_connection_name: Optional[str] = Field(default=None)
    google_cloud_project: Optional[str] = Field(default=None)
    ip_type: str = Field(default="PRIVATE", description="Cloud SQL IP type")
    max_connections: int = Field(default=5, description="Connection pool size", gt=0)
    pool_timeout: float = Field(default=30.0, description="Pool checkout timeout", gt=0)

    @field_validator("host", "database", "user", "password")
    @classmethod
    def validate_required(cls, v: str, info) -> str:
        """Reject empty required fields."""
        if not v or not v.strip():
            raise ValueError(f"Database {info.field_name} is required")
        return v

    @field_validator("ip_type")
    @classmethod
    def validate_ip_type(cls, v: str) -> str:
        """Normalise and check the Cloud SQL IP type."""
        v = v.upper()
        if v not in ("PRIVATE", "PUBLIC", "PSC"):
            raise ValueError("ip_type must be one of PRIVATE, PUBLIC, PSC")
        return v

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Build and validate the database settings from ``DB_*`` variables.

        Raises:
            ConfigError: If a required value is missing or a value is invalid
        """
        try:
            return cls(
                host=os.getenv("DB_HOST", "localhost"),
                port=int(os.getenv("DB_PORT", "5432")),
                database=os.getenv("DB_NAME", "postgres"),
                user=os.getenv("DB_USER", "postgres"),
                password=os.getenv("DB_PASSWORD", ""),
                ssl=os.getenv("DB_SSL") == "true",
                instance_connection_name=os.getenv("INSTANCE_CONNECTION_NAME") or None,
                google_cloud_project=os.getenv("GOOGLE_CLOUD_PROJECT") or None,
                ip_type=os.getenv("DB_IP_TYPE", "PRIVATE"),
                max_connections=int(os.getenv("DB_MAX_CONNECTIONS", "5")),
                pool_timeout=float(os.getenv("DB_POOL_TIMEOUT", "30")),
            )
        except ValidationError as e:
            problems = "; ".join(err["msg"] for err in e.errors())
            raise ConfigError(f"Invalid database configuration: {problems}") from e
        except ValueError as e:
            raise ConfigError(f"Invalid database configuration: {e}") from e


@dataclass
class Config:
    """Configuration for the demo MCP server."""
    database: DatabaseConfig

    # Optional Gemini access for drafting SQL from questions
    google_api_key: Optional[str] = None
    google_cloud_project: Optional[str] = None
    google_cloud_location: Optional[str] = None
    sql_draft_model: str = "gemini-2.5-flash"

    log_level: str = "INFO"
    transport: str = "stdio"

    @property
    def llm_enabled(self) -> bool:
        return bool(self.google_api_key or self.google_cloud_location)

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()
        return cls(
            database=DatabaseConfig.from_env(),
            google_api_key=os.getenv("GOOGLE_API_KEY"),
            google_cloud_project=os.getenv("GOOGLE_CLOUD_PROJECT"),
            google_cloud_location=os.getenv("GOOGLE_CLOUD_LOCATION"),
            sql_draft_model=os.getenv("SQL_DRAFT_MODEL", "gemini-2.5-flash"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            transport=os.getenv("MCP_TRANSPORT", "stdio"),
        )
