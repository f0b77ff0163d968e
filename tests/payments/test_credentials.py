from core.settings import SecurePayCredentials, SecurePaySettings
from infrastructure.external.payments.credentials import resolve_credentials


def _settings(**kwargs) -> SecurePaySettings:
    return SecurePaySettings(
        production=SecurePayCredentials(client_id="live-id", client_secret="live-secret"),
        sandbox=SecurePayCredentials(client_id="sb-id", client_secret="sb-secret"),
        **kwargs,
    )


def test_sandbox_is_default():
    creds = resolve_credentials(_settings())
    assert creds.environment == "sandbox"
    assert creds.base_url == "https://sandbox.securepay.dev/api"
    assert (creds.client_id, creds.client_secret) == ("sb-id", "sb-secret")


def test_production_credentials_and_url():
    creds = resolve_credentials(_settings(environment="production"))
    assert creds.base_url == "https://console.securepay.my/api"
    assert (creds.client_id, creds.client_secret) == ("live-id", "live-secret")
    assert creds.is_complete


def test_unset_credentials_resolve_to_empty_strings():
    creds = resolve_credentials(SecurePaySettings(sandbox=SecurePayCredentials()))
    assert creds.client_id == "" and creds.client_secret == ""
    assert not creds.is_complete


def test_secret_is_not_in_repr():
    assert "sb-secret" not in repr(resolve_credentials(_settings()))


def test_settings_read_nested_env(monkeypatch):
    monkeypatch.setenv("SECUREPAY__ENVIRONMENT", "production")
    monkeypatch.setenv("SECUREPAY__PRODUCTION__CLIENT_ID", "env-id")
    monkeypatch.setenv("SECUREPAY__CACHE__TTL_BUFFER", "120")
    cfg = SecurePaySettings()
    assert cfg.environment == "production"
    assert cfg.production.client_id == "env-id"
    assert cfg.cache.ttl_buffer == 120
    assert cfg.cache.prefix == "securepay_"


def test_unknown_environment_uses_sandbox_url_without_credentials():
    creds = resolve_credentials(_settings(environment="staging"))
    assert creds.environment == "staging"
    assert creds.base_url == "https://sandbox.securepay.dev/api"
    assert not creds.is_complete
