import pytest

from paper_tracker import serve
from paper_tracker.core import config


def test_validate_runtime_config_rejects_default_secret_in_production(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'production')
    monkeypatch.setattr(config, 'JWT_SECRET_KEY', 'change-me')

    with pytest.raises(RuntimeError):
        config.validate_runtime_config()


def test_validate_runtime_config_requires_both_tls_paths(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'TLS_CERT_PATH', '/etc/tls/cert.pem')
    monkeypatch.setattr(config, 'TLS_KEY_PATH', '')

    with pytest.raises(RuntimeError):
        config.validate_runtime_config()


def test_server_options_without_tls(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'HOST', '0.0.0.0')
    monkeypatch.setattr(config, 'PORT', 9000)
    monkeypatch.setattr(config, 'TLS_CERT_PATH', '')
    monkeypatch.setattr(config, 'TLS_KEY_PATH', '')

    options = serve.build_server_options()

    assert options['host'] == '0.0.0.0'
    assert options['port'] == 9000
    assert 'ssl_certfile' not in options


def test_server_options_with_tls(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'TLS_CERT_PATH', '/etc/tls/cert.pem')
    monkeypatch.setattr(config, 'TLS_KEY_PATH', '/etc/tls/key.pem')

    options = serve.build_server_options()

    assert options['ssl_certfile'] == '/etc/tls/cert.pem'
    assert options['ssl_keyfile'] == '/etc/tls/key.pem'
