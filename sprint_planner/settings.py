from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_port: int = Field(default=8080, alias="APP_PORT")
    cors_origins: list[str] = Field(default=["http://localhost:3000"], alias="CORS_ORIGINS")

    jira_host: str = Field(default="", alias="JIRA_HOST")
    jira_username: str = Field(default="", alias="JIRA_USERNAME")
    jira_api_token: str | None = Field(default=None, alias="JIRA_API_TOKEN")
    jira_protocol: str = Field(default="https", alias="JIRA_PROTOCOL")
    jira_api_version: str = Field(default="3", alias="JIRA_API_VERSION")
    jira_strict_ssl: bool = Field(default=True, alias="JIRA_STRICT_SSL")
    jira_timeout_seconds: int = Field(default=30, alias="JIRA_TIMEOUT_SECONDS")

    # Custom field ids differ between JIRA instances
    jira_story_points_field: str = Field(default="customfield_10026", alias="JIRA_STORY_POINTS_FIELD")
    jira_sprint_field: str = Field(default="sprint", alias="JIRA_SPRINT_FIELD")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_timezone: str = Field(default="UTC", alias="LOG_TIMEZONE")

settings = Settings()
