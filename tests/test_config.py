import pytest

from bizoptima.config import load_app_config


def write_config(tmp_path, content: str):
    path = tmp_path / "bizoptima_config.toml"
    path.write_text(content, encoding="utf-8")
    return path


def test_defaults_when_no_config_file(tmp_path, monkeypatch) -> None:
    """Without a config file in the working directory, defaults apply."""
    monkeypatch.chdir(tmp_path)

    config = load_app_config()

    assert config.database.engine == "sqlite"
    assert config.database.path == (tmp_path / "data/db/bizoptima.sqlite").resolve()
    assert config.output_dir == (tmp_path / "data/output").resolve()
    assert config.log_level == "WARNING"


def test_paths_are_resolved_relative_to_config_file(tmp_path) -> None:
    path = write_config(
        tmp_path,
        """
        [storage]
        engine = "memory"
        path = "store/app.sqlite"

        [export]
        output_dir = "exports"

        [logging]
        level = "debug"
        """,
    )

    config = load_app_config(str(path))

    assert config.database.engine == "memory"
    assert config.database.path == (tmp_path / "store/app.sqlite").resolve()
    assert config.output_dir == (tmp_path / "exports").resolve()
    assert config.log_level == "DEBUG"


def test_explicit_missing_config_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "missing.toml"))


@pytest.mark.parametrize(
    "content, message",
    [
        ("[storage\nengine = 1", "Failed to parse TOML"),
        ('[storage]\nengine = "postgres"', "storage.engine"),
        ('[logging]\nlevel = "LOUD"', "logging.level"),
    ],
)
def test_invalid_config_raises_value_error(tmp_path, content, message) -> None:
    path = write_config(tmp_path, content)

    with pytest.raises(ValueError, match=message):
        load_app_config(str(path))
