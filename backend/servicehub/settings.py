from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

NOTIFY_MODES = ("outbox", "inline", "strict")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    # Runtime
    environment: str = Field(default="development", validation_alias="NODE_ENV")
    port: int = Field(default=8080, validation_alias="PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # AWS
    aws_region: str = Field(default="us-east-1", validation_alias="AWS_REGION")
    aws_account_id: str | None = Field(default=None, validation_alias="AWS_ACCOUNT_ID")
    # Static credentials are optional; without them boto3 uses its default chain.
    aws_access_key_id: str | None = Field(default=None, validation_alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: str | None = Field(default=None, validation_alias="AWS_SECRET_ACCESS_KEY")
    aws_session_token: str | None = Field(default=None, validation_alias="AWS_SESSION_TOKEN")

    # Storage
    assets_bucket_name: str | None = Field(default=None, validation_alias="ASSETS_BUCKET_NAME")
    upload_key_prefix: str = Field(default="images", validation_alias="UPLOAD_KEY_PREFIX")
    ddb_table_name: str | None = Field(default=None, validation_alias="DDB_TABLE_NAME")

    # Notifications
    notification_topic_name: str = Field(
        default="ServiceHubAllUsers", validation_alias="NOTIFICATION_TOPIC_NAME"
    )
    # outbox: enqueue and let the worker publish
    # inline: publish in-request, log failures
    # strict: publish in-request, failures fail the request
    listing_notify_mode: str = Field(default="outbox", validation_alias="LISTING_NOTIFY_MODE")

    # When false, updating someone else's listing is a silent no-op (legacy behaviour).
    strict_owner_update: bool = Field(default=True, validation_alias="STRICT_OWNER_UPDATE")

    # Observability (OpenTelemetry is optional)
    otel_enabled: bool = Field(default=False, validation_alias="OTEL_ENABLED")
    otel_service_name: str | None = Field(default=None, validation_alias="OTEL_SERVICE_NAME")
    otel_exporter_otlp_endpoint: str | None = Field(
        default=None, validation_alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )

    # ---- helpers / derived flags ----
    @property
    def normalized_environment(self) -> str:
        v = (self.environment or "").strip().lower()
        if v in ("prod", "production"):
            return "production"
        if v in ("stage", "staging"):
            return "staging"
        if v in ("dev", "development"):
            return "development"
        if v == "test":
            return "test"
        return v or "development"

    @property
    def is_production(self) -> bool:
        return self.normalized_environment == "production"

    @property
    def normalized_notify_mode(self) -> str:
        v = (self.listing_notify_mode or "").strip().lower()
        return v if v in NOTIFY_MODES else "outbox"

    @property
    def has_static_credentials(self) -> bool:
        return bool(self.aws_access_key_id and self.aws_secret_access_key)

    def require_in_production(self) -> None:
        """
        Enforce required settings in production.

        Local work may run with partial config; production must be able to
        reach the bucket, the topic and the table.
        """
        if not self.is_production:
            return

        missing: list[str] = []
        if not self.assets_bucket_name:
            missing.append("ASSETS_BUCKET_NAME")
        if not self.aws_account_id:
            missing.append("AWS_ACCOUNT_ID")
        if not self.ddb_table_name:
            missing.append("DDB_TABLE_NAME")

        if missing:
            raise RuntimeError(
                "Missing required production environment variables: "
                + ", ".join(missing)
            )

    def to_log_safe_dict(self) -> dict[str, object]:
        """
        A redacted representation safe for structured logs.
        """
        return {
            "environment": self.normalized_environment,
            "port": self.port,
            "aws": {
                "aws_region": self.aws_region,
                "aws_account_id": self.aws_account_id,
                "static_credentials_configured": self.has_static_credentials,
                "assets_bucket_name": self.assets_bucket_name,
                "ddb_table_name": self.ddb_table_name,
            },
            "notifications": {
                "topic_name": self.notification_topic_name,
                "listing_notify_mode": self.normalized_notify_mode,
            },
            "strict_owner_update": bool(self.strict_owner_update),
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    s = Settings()
    s.require_in_production()
    return s
