import pytest
import json
from datetime import timezone, timedelta
from pathlib import Path
from calgrid.config import CalendarSettings, parse_timezone, load_config, find_default_config


class TestParseTimezone:
    def test_parse_utc(self):
        assert parse_timezone("UTC") == timezone.utc
        assert parse_timezone("gmt") == timezone.utc

    def test_parse_positive_offset(self):
        assert parse_timezone("+05:30") == timezone(timedelta(hours=5, minutes=30))

    def test_parse_negative_offset_without_colon(self):
        assert parse_timezone("-0800") == timezone(timedelta(hours=-8))

    def test_parse_local(self):
        assert parse_timezone("LOCAL") is None
        assert parse_timezone(None) is None

    def test_parse_invalid(self, capsys):
        assert parse_timezone("Mars/Olympus") is None
        assert "Invalid timezone" in capsys.readouterr().err


class TestLoadConfig:
    def write(self, tmp_path, data):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps(data))
        return str(config_file)

    def test_load_valid_config(self, tmp_path):
        path = self.write(
            tmp_path,
            {"events": ["team.json"], "timezone": "UTC", "week_start": 1, "subdivisions": 2},
        )

        settings = load_config(path)

        assert settings.sources == ["team.json"]
        assert settings.timezone == "UTC"
        assert settings.week_start == 1
        assert settings.subdivisions == 2
        assert settings.aliases == {}

    def test_load_config_with_defaults(self, tmp_path):
        settings = load_config(self.write(tmp_path, {"events": ["team.json"]}))
        assert settings == CalendarSettings(sources=["team.json"])

    def test_load_config_with_aliases_dict(self, tmp_path):
        path = self.write(
            tmp_path, {"events": {"Team": "team.json", "Personal": "/data/personal.json"}}
        )

        settings = load_config(path)

        assert settings.sources == ["team.json", "/data/personal.json"]
        assert settings.aliases["team.json"] == "Team"
        assert settings.aliases["/data/personal.json"] == "Personal"

    def test_load_nonexistent_config(self):
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/path/config.json")

    def test_missing_events_field(self, tmp_path):
        with pytest.raises(ValueError, match="must contain 'events' field"):
            load_config(self.write(tmp_path, {"timezone": "UTC"}))

    def test_invalid_json(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text("{not json")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_config(str(config_file))

    @pytest.mark.parametrize(
        "data",
        [
            {"events": []},
            {"events": {}},
            {"events": "team.json"},
            {"events": [1, 2]},
            {"events": {"Team": 3}},
            {"events": ["a.json"], "week_start": 7},
            {"events": ["a.json"], "week_start": "monday"},
            {"events": ["a.json"], "subdivisions": 0},
        ],
    )
    def test_invalid_values(self, tmp_path, data):
        with pytest.raises(ValueError):
            load_config(self.write(tmp_path, data))

    def test_top_level_must_be_object(self, tmp_path):
        with pytest.raises(ValueError):
            load_config(self.write(tmp_path, ["team.json"]))


class TestFindDefaultConfig:
    @pytest.fixture
    def isolated(self, tmp_path, monkeypatch):
        home = tmp_path / "home"
        work = tmp_path / "work"
        home.mkdir()
        work.mkdir()
        monkeypatch.chdir(work)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        return home, work, tmp_path / "xdg"

    def test_nothing_found(self, isolated):
        assert find_default_config() is None

    def test_current_directory_first(self, isolated):
        home, work, _ = isolated
        (work / ".calgrid.json").write_text("{}")
        (home / ".calgrid.json").write_text("{}")
        assert find_default_config() == ".calgrid.json"

    def test_home_directory(self, isolated):
        home, _, _ = isolated
        (home / ".calgrid.json").write_text("{}")
        assert find_default_config() == str(home / ".calgrid.json")

    def test_config_directory(self, isolated):
        _, _, xdg = isolated
        (xdg / "calgrid").mkdir(parents=True)
        (xdg / "calgrid" / "config.json").write_text("{}")
        assert find_default_config() == str(xdg / "calgrid" / "config.json")
