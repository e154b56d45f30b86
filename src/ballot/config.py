from __future__ import annotations

from uuid import uuid4

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BALLOT_", env_file=".env", extra="ignore")

    app_name: str = "ballot"

    # Instance label for logs
    instance_id: str = Field(default_factory=lambda: str(uuid4())[:8])

    # Coordination backend: zookeeper or memory
    backend: str = "zookeeper"

    # ZooKeeper connection
    zk_hosts: str = Field(default="localhost:2181", validation_alias="ZK_HOSTS")
    session_timeout: float = Field(default=3.0, validation_alias="ZK_SESSION_TIMEOUT")
    connect_timeout: float = Field(default=15.0, validation_alias="ZK_CONNECT_TIMEOUT")

    # Election
    election_namespace: str = Field(default="/election", validation_alias="ELECTION_NAMESPACE")
    candidate_prefix: str = Field(default="c_", validation_alias="ELECTION_CANDIDATE_PREFIX")

    # Observability
    log_level: str = "INFO"
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")
    enable_metrics: bool = Field(default=True, validation_alias="ENABLE_METRICS")
    metrics_port: int | None = Field(default=None, validation_alias="METRICS_PORT")


settings = Settings()
