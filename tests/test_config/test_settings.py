"""Testes das settings carregadas do ambiente e da validação de startup."""

from __future__ import annotations

import pytest

from app.bootstrap import collect_settings_errors, validate_runtime_settings
from config.settings import (
    IdempotencySettings,
    QueueSettings,
    SecuritySettings,
    WebhookSecuritySettings,
    get_base_settings,
    get_chatwoot_settings,
    get_firestore_settings,
    get_idempotency_settings,
    get_krayin_settings,
    get_queue_settings,
    get_security_settings,
    get_webhook_security_settings,
    parse_backoff_schedule,
)
from config.settings.base.core import BaseSettings
from utils.errors import ConfigurationError

_CACHED = (
    get_base_settings,
    get_chatwoot_settings,
    get_firestore_settings,
    get_idempotency_settings,
    get_krayin_settings,
    get_queue_settings,
    get_security_settings,
    get_webhook_security_settings,
)

_ENV_VARS = (
    "ENVIRONMENT",
    "REDIS_URL",
    "GCP_PROJECT",
    "GOOGLE_CLOUD_PROJECT",
    "FIRESTORE_PROJECT_ID",
    "CHATWOOT_WEBHOOK_SECRET",
    "WEBHOOK_MAX_PAYLOAD_SIZE",
    "WEBHOOK_TIMESTAMP_TOLERANCE",
    "WEBHOOK_TIMESTAMP_ENABLED",
    "IDEMPOTENCY_BACKEND",
    "COUNTER_BACKEND",
    "QUEUE_BACKEND",
    "QUEUE_BACKOFF_SCHEDULE",
    "DEAD_LETTER_BACKEND",
    "KRAYIN_URL",
    "KRAYIN_API_TOKEN",
    "CHATWOOT_URL",
    "CHATWOOT_API_TOKEN",
    "ADMIN_API_TOKEN",
    "TRUSTED_PROXIES",
)

PRODUCTION_ENV = {
    "ENVIRONMENT": "production",
    "REDIS_URL": "redis://localhost:6379/0",
    "GCP_PROJECT": "ponte-prod",
    "CHATWOOT_WEBHOOK_SECRET": "s3cret",
    "IDEMPOTENCY_BACKEND": "redis",
    "COUNTER_BACKEND": "redis",
    "QUEUE_BACKEND": "redis",
    "DEAD_LETTER_BACKEND": "firestore",
    "KRAYIN_URL": "https://crm.example.com/",
    "KRAYIN_API_TOKEN": "krayin",
    "CHATWOOT_URL": "https://chat.example.com",
    "CHATWOOT_API_TOKEN": "chatwoot",
}


def _clear_caches() -> None:
    for getter in _CACHED:
        getter.cache_clear()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    _clear_caches()
    yield
    _clear_caches()


def _set_env(monkeypatch: pytest.MonkeyPatch, values: dict[str, str]) -> None:
    for name, value in values.items():
        monkeypatch.setenv(name, value)


class TestLoaders:
    def test_defaults(self) -> None:
        webhook = get_webhook_security_settings()
        queue = get_queue_settings()

        assert webhook.max_payload_bytes == 1_048_576
        assert webhook.timestamp_tolerance_seconds == 300
        assert webhook.timestamp_enabled is True
        assert queue.max_attempts == 5
        assert queue.backoff_schedule == (60, 120, 300, 600, 1800)
        assert get_idempotency_settings().ttl_seconds == 86400
        assert get_security_settings().rate_limit_max_attempts == 100

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _set_env(
            monkeypatch,
            {
                "WEBHOOK_TIMESTAMP_ENABLED": "false",
                "QUEUE_BACKOFF_SCHEDULE": "5, 10",
                "KRAYIN_URL": "https://crm.example.com/",
                "ENVIRONMENT": "prod",
            },
        )

        assert get_webhook_security_settings().timestamp_enabled is False
        assert get_queue_settings().backoff_schedule == (5, 10)
        assert get_krayin_settings().base_url == "https://crm.example.com"
        assert get_base_settings().is_production is True

    def test_unknown_backend_falls_back_to_memory(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("QUEUE_BACKEND", "rabbit")

        assert get_queue_settings().backend == "memory"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("60,120", (60, 120)), (" 1 , ,2 ", (1, 2)), ("", (60, 120, 300, 600, 1800))],
    )
    def test_parse_backoff_schedule(self, raw: str, expected: tuple[int, ...]) -> None:
        assert parse_backoff_schedule(raw) == expected

    def test_parse_backoff_schedule_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            parse_backoff_schedule("60,abc")


class TestValidation:
    def test_webhook_requires_secret(self) -> None:
        assert WebhookSecuritySettings().validate() == ["CHATWOOT_WEBHOOK_SECRET não configurado"]

    def test_memory_backends_rejected_outside_development(self) -> None:
        staging = BaseSettings(environment="staging")

        assert IdempotencySettings().validate(staging)
        assert QueueSettings().validate(staging)
        assert SecuritySettings().validate(staging)

    def test_claim_ttl_must_fit_window(self) -> None:
        errors = IdempotencySettings(ttl_seconds=10, claim_ttl_seconds=30).validate(BaseSettings())

        assert any("IDEMPOTENCY_CLAIM_TTL" in error for error in errors)

    def test_trusted_proxies_are_parsed_and_validated(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TRUSTED_PROXIES", "10.0.0.0/8, ,127.0.0.1")

        assert get_security_settings().trusted_proxies == ("10.0.0.0/8", "127.0.0.1")
        errors = SecuritySettings(trusted_proxies=("10.0.0.0/8", "proxy")).validate(BaseSettings())
        assert errors == ["TRUSTED_PROXIES contém rede inválida: proxy"]

    def test_queue_rejects_non_positive_schedule(self) -> None:
        errors = QueueSettings(backoff_schedule=(60, 0)).validate(BaseSettings())

        assert errors == ["QUEUE_BACKOFF_SCHEDULE deve conter apenas valores > 0"]


class TestStartupValidation:
    def test_errors_are_prefixed_by_domain(self) -> None:
        errors = collect_settings_errors()

        assert "webhook: CHATWOOT_WEBHOOK_SECRET não configurado" in errors
        assert "krayin: KRAYIN_URL não configurado" in errors
        assert "chatwoot: CHATWOOT_URL não configurado" in errors

    def test_development_only_warns(self) -> None:
        validate_runtime_settings()

    def test_production_fails_fast(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")

        with pytest.raises(ConfigurationError) as exc_info:
            validate_runtime_settings()

        assert "QUEUE_BACKEND=memory" in str(exc_info.value)

    def test_complete_production_config_is_valid(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _set_env(monkeypatch, PRODUCTION_ENV)

        assert collect_settings_errors() == []
        validate_runtime_settings()

    def test_firestore_dead_letters_need_project(self, monkeypatch: pytest.MonkeyPatch) -> None:
        env = {**PRODUCTION_ENV}
        del env["GCP_PROJECT"]
        _set_env(monkeypatch, env)

        assert collect_settings_errors() == [
            "firestore: FIRESTORE_PROJECT_ID ou GCP_PROJECT deve estar configurado"
        ]
