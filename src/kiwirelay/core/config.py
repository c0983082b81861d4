from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    env: str = "local"
    log_level: str = "INFO"

    # MailerLite (directory service)
    mailerlite_api_key: SecretStr | None = None
    mailerlite_base_url: str = "https://connect.mailerlite.com/api"
    mailerlite_timeout_sec: int = 10
    mailerlite_dry_run: bool = False
    use_tags: bool = False

    # Kiwify (event source). Older deployments used KIWIFY_TOKEN.
    kiwify_webhook_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("kiwify_webhook_token", "kiwify_token"),
    )

    process_unknown_products: bool = False
    product_catalog_file: str | None = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    @property
    def api_key(self) -> str | None:
        if self.mailerlite_api_key is None:
            return None
        return self.mailerlite_api_key.get_secret_value() or None

    @property
    def shared_secret(self) -> str | None:
        if self.kiwify_webhook_token is None:
            return None
        return self.kiwify_webhook_token.get_secret_value() or None


settings = Settings()
