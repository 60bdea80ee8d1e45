from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Abex Transport"
    quote_webhook_url: str = (
        "https://app.berocker.com/api/v1/auto-logistics/client/webhooks/lead/68ebc2deb296d/save"
    )
    quote_webhook_timeout_seconds: float | None = None
    resend_api_key: str | None = None
    contact_sender: str = "Abex Transport <noreply@abextransport.com>"
    contact_recipient: str = "contact@abextransport.com"
    content_blob_connection_string: str | None = None
    content_blob_container: str = "site-content"
    content_globals_doc: str = "site/globals"
    content_faq_doc: str = "site/faq"
    default_business_name: str = "Abex Transport"
    nhtsa_base_url: str = "https://vpic.nhtsa.dot.gov/api"
    nhtsa_timeout_seconds: float = 15.0
    auth_enabled: bool = False
    oidc_issuer: str | None = None
    oidc_audience: str | None = None
    oidc_client_id: str | None = None
    oidc_jwks_url: str | None = None
    oidc_authorization_url: str | None = None
    oidc_required_scope: str | None = None
    oidc_algorithms: list[str] = ["RS256"]


settings = Settings()
