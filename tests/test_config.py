from pathlib import Path

import pytest

from collibra_export.config.settings import Config, ConfigurationError
from collibra_export.config_loader import load_export_options
from collibra_export.domain.enums import ExportFormat

ENV_KEYS = [
    "COLLIBRA_URL",
    "COLLIBRA_USERNAME",
    "COLLIBRA_PASSWORD",
    "COLLIBRA_API_URL",
    "COLLIBRA_VERIFY_SSL",
    "COLLIBRA_TIMEOUT",
    "COLLIBRA_PAGE_SIZE",
    "ENVIRONMENT",
]


@pytest.fixture
def env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("COLLIBRA_URL", "https://acme.collibra.com/")
    monkeypatch.setenv("COLLIBRA_USERNAME", "exporter")
    monkeypatch.setenv("COLLIBRA_PASSWORD", "s3cret-pass")
    return monkeypatch


def test_defaults_from_environment(env):
    config = Config(environment="test")

    assert config.collibra.base_url == "https://acme.collibra.com"
    assert config.api.api_url == "https://acme.collibra.com/rest/2.0"
    assert config.api.page_size == 1000
    assert config.api.verify_ssl is True


def test_overrides_from_environment(env):
    env.setenv("COLLIBRA_API_URL", "https://proxy.example.com/rest/2.0/")
    env.setenv("COLLIBRA_VERIFY_SSL", "false")
    env.setenv("COLLIBRA_PAGE_SIZE", "250")

    config = Config(environment="test")

    assert config.api.api_url == "https://proxy.example.com/rest/2.0"
    assert config.api.verify_ssl is False
    assert config.api.page_size == 250


def test_missing_credentials_are_listed(env):
    env.delenv("COLLIBRA_PASSWORD")
    env.delenv("COLLIBRA_USERNAME")

    with pytest.raises(ConfigurationError) as excinfo:
        Config(environment="test")

    assert "COLLIBRA_USERNAME" in str(excinfo.value)
    assert "COLLIBRA_PASSWORD" in str(excinfo.value)


@pytest.mark.parametrize("key, value", [
    ("COLLIBRA_URL", "acme.collibra.com"),
    ("COLLIBRA_PAGE_SIZE", "0"),
    ("COLLIBRA_TIMEOUT", "soon"),
])
def test_invalid_values(env, key, value):
    env.setenv(key, value)

    with pytest.raises(ConfigurationError):
        Config(environment="test")


def test_production_requires_tls_verification(env):
    env.setenv("COLLIBRA_VERIFY_SSL", "false")

    with pytest.raises(ConfigurationError):
        Config(environment="production")


def test_explicit_env_file(env, tmp_path):
    env.delenv("COLLIBRA_USERNAME")
    env_file = tmp_path / "export.env"
    env_file.write_text("COLLIBRA_USERNAME=from-file\n", encoding="utf-8")

    config = Config(environment="test", env_file=env_file)

    assert config.collibra.username == "from-file"


def test_missing_explicit_env_file(env, tmp_path):
    with pytest.raises(ConfigurationError):
        Config(environment="test", env_file=tmp_path / "absent.env")


def test_summary_and_repr_hide_password(env):
    config = Config(environment="test")

    assert "s3cret-pass" not in repr(config)
    assert "s3cret-pass" not in str(config.get_security_summary())


def test_export_options_default_profile():
    options = load_export_options()

    assert options.include_assets
    assert options.include_attributes
    assert not options.include_relations
    assert options.output_dir == Path("./exports")


def test_export_options_profile_then_overrides(tmp_path):
    profile = tmp_path / "profile.yml"
    profile.write_text(
        "export:\n"
        "  include_relations: true\n"
        "  format: csv\n"
        "  output_dir: /data/out\n",
        encoding="utf-8",
    )

    options = load_export_options(str(profile), include_relations=None, output_dir="/tmp/x")

    assert options.include_relations is True
    assert options.format == ExportFormat.CSV
    assert options.output_dir == Path("/tmp/x")


def test_export_options_rejects_bad_format(tmp_path):
    with pytest.raises(ConfigurationError):
        load_export_options(format="xlsx")


def test_export_options_missing_profile(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_export_options(str(tmp_path / "missing.yml"))


def test_project_env_file_fills_gaps_only(env, tmp_path, monkeypatch):
    env.delenv("COLLIBRA_PASSWORD")
    (tmp_path / ".env").write_text(
        "COLLIBRA_PASSWORD=from-dotenv\nCOLLIBRA_USERNAME=ignored\n", encoding="utf-8"
    )
    monkeypatch.setattr(Config, "_find_project_root", lambda self: tmp_path)

    config = Config(environment="test")

    assert config.collibra.password == "from-dotenv"
    assert config.collibra.username == "exporter"
    assert config.get_security_summary()["loaded_env_files"] == [str(tmp_path / ".env")]


def test_environment_specific_env_file_is_not_read(env, tmp_path, monkeypatch):
    (tmp_path / ".env.test").write_text("COLLIBRA_PAGE_SIZE=5\n", encoding="utf-8")
    monkeypatch.setattr(Config, "_find_project_root", lambda self: tmp_path)

    config = Config(environment="test")

    assert config.api.page_size == 1000
