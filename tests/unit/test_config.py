from baropay.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.max_amount == 500000
    assert settings.order_ttl_ms == 30 * 60 * 1000
    assert settings.order_id_prefix == "BARO"
    assert settings.port == 4242
    assert settings.delete_order_on_confirm_failure is False


def test_signing_secret_falls_back_to_toss_key():
    settings = Settings(_env_file=None, toss_secret_key="toss_sk", order_signing_secret=None)
    assert settings.signing_secret == "toss_sk"
    assert settings.signing_secret_is_fallback is True


def test_empty_signing_secret_counts_as_unset():
    settings = Settings(_env_file=None, toss_secret_key="toss_sk", order_signing_secret="")
    assert settings.signing_secret == "toss_sk"
    assert settings.signing_secret_is_fallback is True


def test_dedicated_signing_secret():
    settings = Settings(_env_file=None, toss_secret_key="toss_sk", order_signing_secret="signing")
    assert settings.signing_secret == "signing"
    assert settings.signing_secret_is_fallback is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MAX_AMOUNT", "1000")
    monkeypatch.setenv("ORDER_TTL_MS", "60000")
    monkeypatch.setenv("ORDER_SIGNING_SECRET", "from_env")
    settings = Settings(_env_file=None)
    assert settings.max_amount == 1000
    assert settings.order_ttl_ms == 60000
    assert settings.signing_secret == "from_env"
