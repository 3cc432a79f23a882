from pathlib import Path

import pytest

from config import DEFAULT_DATA_DIR, ConfigError, load_config, read_dotenv

KEYS = (
    "TASKTREE_HOME",
    "TASKTREE_BASENAME",
    "TASKTREE_MAX_UNDO",
    "TASKTREE_ROW_HEIGHT",
    "TASKTREE_DROP_ZONE",
    "TASKTREE_ALT_SCREEN",
    "TASKTREE_WRAP_WIDTH",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for key in KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults():
    config = load_config()

    assert config.data_dir == DEFAULT_DATA_DIR
    assert config.basename == "tasktree"
    assert config.max_undo == 20
    assert config.row_height == 24
    assert config.drop_zone_threshold == pytest.approx(0.2)
    assert config.alt_screen is True
    assert config.wrap_width is None


def test_reads_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TASKTREE_HOME", str(tmp_path / "tasks"))
    monkeypatch.setenv("TASKTREE_MAX_UNDO", "5")
    monkeypatch.setenv("TASKTREE_ALT_SCREEN", "off")

    config = load_config()

    assert config.data_dir == tmp_path / "tasks"
    assert config.max_undo == 5
    assert config.alt_screen is False


def test_reads_dotenv(tmp_path):
    (tmp_path / ".env").write_text(
        '# local overrides\nexport TASKTREE_BASENAME="mixdown"\nTASKTREE_DROP_ZONE=0.25\n',
        encoding="utf-8",
    )

    config = load_config()

    assert config.basename == "mixdown"
    assert config.drop_zone_threshold == pytest.approx(0.25)


def test_env_wins_over_dotenv(monkeypatch, tmp_path):
    (tmp_path / ".env").write_text("TASKTREE_BASENAME=from-file\n", encoding="utf-8")
    monkeypatch.setenv("TASKTREE_BASENAME", "from-env")

    assert load_config().basename == "from-env"


@pytest.mark.parametrize(
    "key, value",
    [
        ("TASKTREE_MAX_UNDO", "many"),
        ("TASKTREE_MAX_UNDO", "0"),
        ("TASKTREE_ROW_HEIGHT", "-3"),
        ("TASKTREE_DROP_ZONE", "0.7"),
        ("TASKTREE_DROP_ZONE", "wide"),
        ("TASKTREE_ALT_SCREEN", "maybe"),
        ("TASKTREE_WRAP_WIDTH", "5"),
        ("TASKTREE_WRAP_WIDTH", "wide"),
    ],
)
def test_invalid_values_raise(monkeypatch, key, value):
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigError) as excinfo:
        load_config()

    assert key in str(excinfo.value)


def test_home_is_expanded(monkeypatch):
    monkeypatch.setenv("TASKTREE_HOME", "~/somewhere")

    assert load_config().data_dir == Path("~/somewhere").expanduser()


def test_wrap_width_from_dotenv(tmp_path):
    (tmp_path / ".env").write_text("TASKTREE_WRAP_WIDTH=60\n", encoding="utf-8")

    assert load_config().wrap_width == 60


def test_read_dotenv(tmp_path):
    dotenv = tmp_path / "local.env"
    dotenv.write_text(
        "\n".join([
            "# comment",
            "A=1",
            "A=2",
            "export B='quoted value'",
            "C=",
            "not an assignment",
        ]),
        encoding="utf-8",
    )

    assert read_dotenv(dotenv) == {"A": "1", "B": "quoted value"}
    assert read_dotenv(tmp_path / "missing.env") == {}
