import pytest

from drdump.errors import DumpError
from drdump.services.config_loader import ConfigLoader


def test_config_loader_loads_yaml_mapping(tmp_path):
    config_file = tmp_path / ".drdump.yml"
    config_file.write_text(
        "host: db.local\nport: 3307\ndatabases: app,billing\nkeep_artifacts: true\n",
        encoding="utf-8",
    )

    loader = ConfigLoader()
    loaded = loader.load(str(config_file))

    assert loaded["host"] == "db.local"
    assert loaded["port"] == 3307
    assert loaded["databases"] == "app,billing"


def test_config_loader_builds_settings_from_known_keys(tmp_path):
    config_file = tmp_path / ".drdump.yml"
    config_file.write_text(
        "dump_folder: /data/dbdump\nfunction_memory_mb: 2048\nhost: db.local\n",
        encoding="utf-8",
    )

    settings = ConfigLoader().load_settings(str(config_file))

    assert settings.dump_folder == "/data/dbdump"
    assert settings.function_memory_mb == 2048
    assert settings.function_timeout_seconds == 600


def test_config_loader_returns_defaults_without_path():
    settings = ConfigLoader().load_settings(None)

    assert settings.bucket_parameter == "/drportal/s3/bucket"
    assert settings.command_timeout_seconds is None


def test_config_loader_rejects_unknown_keys(tmp_path):
    config_file = tmp_path / ".drdump.yml"
    config_file.write_text("unknown_key: true\n", encoding="utf-8")

    with pytest.raises(DumpError, match="Unknown configuration keys"):
        ConfigLoader().load(str(config_file))


def test_config_loader_rejects_non_mapping_root(tmp_path):
    config_file = tmp_path / ".drdump.yml"
    config_file.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(DumpError, match="YAML mapping"):
        ConfigLoader().load(str(config_file))
