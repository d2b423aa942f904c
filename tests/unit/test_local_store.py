"""
Unit tests for the local file storage and settings loading
"""

import json
import pytest
from pathlib import Path
from pydantic import ValidationError

# Import project modules
import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '../..'))

from meeting_scheduler.config import SchedulerSettings, load_settings
from meeting_scheduler.exceptions import StorageError
from meeting_scheduler.integrations import local_store
from meeting_scheduler.integrations.local_store import LocalMeetingStore, DEFAULT_STORAGE_KEY
from meeting_scheduler.models import Meeting, PreferredOption


class TestLocalMeetingStore:
    """Test key -> JSON text storage"""

    @pytest.fixture
    def storage_file(self, tmp_path):
        """Storage file path inside a temp directory"""
        return tmp_path / "data" / "storage.json"

    @pytest.fixture
    def meetings(self):
        """Create sample meetings"""
        return [
            Meeting(id=1, name="田中太郎",
                    preferred_options=[PreferredOption(date="2024-01-15", time_slot="morning")]),
            Meeting(id=2, name="佐藤花子", meeting_type="online"),
        ]

    def test_missing_file_loads_empty(self, storage_file):
        """Test a missing file is an empty collection"""
        result = LocalMeetingStore(storage_file).load()
        assert result.success
        assert result.meetings == []

    def test_save_and_load(self, storage_file, meetings):
        """Test the collection survives a save/load cycle"""
        store = LocalMeetingStore(storage_file)
        store.save(meetings)

        result = store.load()

        assert result.success
        assert result.meetings == meetings

    def test_storage_layout(self, storage_file, meetings):
        """Test the file maps the key to a JSON string of the array"""
        LocalMeetingStore(storage_file).save(meetings)

        with open(storage_file, encoding="utf-8") as f:
            items = json.load(f)

        assert isinstance(items[DEFAULT_STORAGE_KEY], str)
        records = json.loads(items[DEFAULT_STORAGE_KEY])
        assert records[0]["preferredOptions"][0]["timeSlot"] == "morning"
        assert records[1]["meetingType"] == "online"

    def test_other_keys_preserved(self, storage_file, meetings):
        """Test saving keeps unrelated keys"""
        storage_file.parent.mkdir(parents=True)
        storage_file.write_text(json.dumps({"other": "value"}), encoding="utf-8")

        LocalMeetingStore(storage_file).save(meetings)

        items = json.loads(storage_file.read_text(encoding="utf-8"))
        assert items["other"] == "value"

    def test_custom_key(self, storage_file, meetings):
        """Test data under another key is independent"""
        LocalMeetingStore(storage_file, key="a").save(meetings)
        assert LocalMeetingStore(storage_file, key="b").load().meetings == []

    def test_corrupt_file(self, storage_file, meetings):
        """Test an unparseable file yields an error and an empty collection"""
        storage_file.parent.mkdir(parents=True)
        storage_file.write_text("{broken", encoding="utf-8")
        store = LocalMeetingStore(storage_file)

        result = store.load()

        assert not result.success
        assert result.meetings == []

        store.save(meetings)
        assert store.load().meetings == meetings

    def test_corrupt_value(self, storage_file):
        """Test an unparseable stored value yields an error"""
        storage_file.parent.mkdir(parents=True)
        storage_file.write_text(json.dumps({DEFAULT_STORAGE_KEY: "[{"}), encoding="utf-8")
        result = LocalMeetingStore(storage_file).load()
        assert not result.success

    def test_non_list_value(self, storage_file):
        """Test a stored object that is not an array yields an error"""
        storage_file.parent.mkdir(parents=True)
        storage_file.write_text(json.dumps({DEFAULT_STORAGE_KEY: "{}"}), encoding="utf-8")
        assert not LocalMeetingStore(storage_file).load().success

    def test_invalid_records_skipped(self, storage_file):
        """Test bad records are skipped, good ones kept"""
        storage_file.parent.mkdir(parents=True)
        records = [{"id": 1, "name": "A", "preferredOptions": []}, {"name": "no id"}]
        storage_file.write_text(
            json.dumps({DEFAULT_STORAGE_KEY: json.dumps(records)}), encoding="utf-8"
        )

        result = LocalMeetingStore(storage_file).load()

        assert result.success
        assert [m.id for m in result.meetings] == [1]
        assert result.skipped_count == 1

    def test_failed_replace_cleans_up(self, storage_file, meetings, monkeypatch):
        """Test a failed rename raises StorageError and leaves no temp file"""
        store = LocalMeetingStore(storage_file)
        store.save(meetings[:1])

        def fail_replace(src, dst):
            raise OSError("read-only file system")

        monkeypatch.setattr(local_store.os, "replace", fail_replace)

        with pytest.raises(StorageError):
            store.save(meetings)

        assert list(storage_file.parent.glob("*.tmp")) == []
        monkeypatch.undo()
        assert store.load().meetings == meetings[:1]

    def test_failed_serialization_cleans_up(self, storage_file, meetings, monkeypatch):
        """Test a serialization error is reported as StorageError"""
        def fail_dump(*args, **kwargs):
            raise TypeError("Object of type set is not JSON serializable")

        monkeypatch.setattr(local_store.json, "dump", fail_dump)

        with pytest.raises(StorageError):
            LocalMeetingStore(storage_file).save(meetings)

        assert list(storage_file.parent.glob("*.tmp")) == []
        assert not storage_file.exists()

    def test_non_finite_id_skipped(self, storage_file):
        """Test an Infinity id is skipped without aborting the load"""
        storage_file.parent.mkdir(parents=True)
        records = '[{"id": 1, "name": "A", "preferredOptions": []}, {"id": Infinity, "name": "B"}]'
        storage_file.write_text(json.dumps({DEFAULT_STORAGE_KEY: records}), encoding="utf-8")

        result = LocalMeetingStore(storage_file).load()

        assert result.success
        assert [m.name for m in result.meetings] == ["A"]
        assert result.skipped_count == 1


class TestSettings:
    """Test YAML and environment configuration"""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        """Remove settings variables from the environment"""
        for name in ("STORAGE_PATH", "STORAGE_KEY", "NOTIFICATION_TIMES", "EXPORT_DIR", "LOG_LEVEL"):
            monkeypatch.delenv(f"MEETING_SCHEDULER_{name}", raising=False)

    def test_defaults(self):
        """Test default settings"""
        settings = load_settings()

        assert settings.storage_key == "meetingSchedulerData"
        assert settings.notification_times == [60, 30]
        assert settings.log_level == "INFO"
        assert settings.storage_path == Path("~/.meeting_scheduler/storage.json").expanduser()

    def test_yaml_file(self, tmp_path):
        """Test values from a YAML file"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "storage_key: custom\nnotification_times: [15]\nlog_level: debug\n",
            encoding="utf-8"
        )

        settings = load_settings(config_file)

        assert settings.storage_key == "custom"
        assert settings.notification_times == [15]
        assert settings.log_level == "DEBUG"

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        """Test environment variables win over the file"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("storage_key: from-file\n", encoding="utf-8")
        monkeypatch.setenv("MEETING_SCHEDULER_STORAGE_KEY", "from-env")
        monkeypatch.setenv("MEETING_SCHEDULER_NOTIFICATION_TIMES", "120, 10")
        monkeypatch.setenv("MEETING_SCHEDULER_STORAGE_PATH", str(tmp_path / "s.json"))

        settings = load_settings(config_file)

        assert settings.storage_key == "from-env"
        assert settings.notification_times == [120, 10]
        assert settings.storage_path == tmp_path / "s.json"

    def test_invalid_notification_time(self):
        """Test reminder minutes are bounded"""
        with pytest.raises(ValidationError):
            SchedulerSettings(notification_times=[-5])
        with pytest.raises(ValidationError):
            SchedulerSettings(notification_times=[40321])

    def test_invalid_log_level(self):
        """Test unknown log levels are rejected"""
        with pytest.raises(ValidationError):
            SchedulerSettings(log_level="LOUD")
