"""
配置加载测试
"""

import pytest
from pydantic import ValidationError

from sgad_docstore.config import AppConfig, DatabaseConfig, load_config

ENV_VARS = (
    "MONGODB_URI",
    "MONGODB_TIMEOUT_MS",
    "CERTIFICATES_DB_NAME",
    "NOSQL_DB_NAME",
    "INITIALIZER_STRICT",
    "LOG_LEVEL",
    "LOG_DIR",
    "LOG_TO_FILE",
    "ENVIRONMENT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv 先记录原值，测试结束后 load_dotenv 写入的变量也会被还原
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults(tmp_path):
    config = load_config(tmp_path / ".env")

    assert isinstance(config, AppConfig)
    assert config.database.mongodb_uri == "mongodb://localhost:27017"
    assert config.database.server_selection_timeout_ms == 3000
    assert config.database.certificates_db_name == "certificados_db"
    assert config.database.nosql_db_name == "sgad_nosql"
    assert config.initializer.strict is False
    assert config.logging.level == "INFO"
    assert config.logging.to_file is False


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("MONGODB_URI", "mongodb://mongo:27017")
    monkeypatch.setenv("MONGODB_TIMEOUT_MS", "500")
    monkeypatch.setenv("CERTIFICATES_DB_NAME", "certificados_test")
    monkeypatch.setenv("INITIALIZER_STRICT", "yes")
    monkeypatch.setenv("LOG_TO_FILE", "1")

    config = load_config(tmp_path / ".env")

    assert config.database.mongodb_uri == "mongodb://mongo:27017"
    assert config.database.server_selection_timeout_ms == 500
    assert config.database.certificates_db_name == "certificados_test"
    assert config.initializer.strict is True
    assert config.logging.to_file is True


def test_env_file(tmp_path, monkeypatch):
    """.env 文件中的值在环境变量缺失时生效"""
    env_file = tmp_path / ".env"
    env_file.write_text("NOSQL_DB_NAME=sgad_nosql_dev\nENVIRONMENT=staging\n")

    config = load_config(env_file)

    assert config.database.nosql_db_name == "sgad_nosql_dev"
    assert config.environment == "staging"


def test_timeout_must_be_positive():
    with pytest.raises(ValidationError):
        DatabaseConfig(server_selection_timeout_ms=0)
