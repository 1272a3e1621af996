"""Desktop entry discovery tests against a temporary XDG tree."""

from pathlib import Path

import pytest

from bwlaunch.api.apps import (DesktopEntryEnumerator, desktop_file_id,
                               xdg_application_dirs)
from bwlaunch.core.catalog import ApplicationCatalogCache


def write_entry(directory, name, body):
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
    return path


def desktop(name="App", exec_line="app", extra=""):
    return f"[Desktop Entry]\nType=Application\nName={name}\nExec={exec_line}\nIcon=app-icon\n{extra}"


@pytest.fixture
def user_dir(tmp_path):
    directory = tmp_path / "home" / "applications"
    directory.mkdir(parents=True)
    return directory


@pytest.fixture
def system_dir(tmp_path):
    directory = tmp_path / "usr" / "applications"
    directory.mkdir(parents=True)
    return directory


def enumerate_ids(*directories):
    enumerator = DesktopEntryEnumerator(list(directories))
    return {app.package_name: app for app in enumerator.enumerate_launchable_apps()}


class TestEnumeration:
    def test_lists_application_entries(self, system_dir):
        write_entry(system_dir, "org.example.Mail.desktop", desktop("Mail", "/usr/bin/mail-client %U"))

        apps = enumerate_ids(system_dir)

        app = apps["org.example.Mail"]
        assert app.activity_name == "mail-client"
        assert app.load_label() == "Mail"
        assert app.load_icon() == "app-icon"

    @pytest.mark.parametrize("extra", ["NoDisplay=true", "Hidden=TRUE"])
    def test_hidden_entries_skipped(self, system_dir, extra):
        write_entry(system_dir, "org.example.Helper.desktop", desktop(extra=extra))
        assert enumerate_ids(system_dir) == {}

    def test_non_application_types_skipped(self, system_dir):
        write_entry(system_dir, "org.example.Link.desktop", "[Desktop Entry]\nType=Link\nName=Docs\nURL=https://example.org\n")
        assert enumerate_ids(system_dir) == {}

    def test_user_entry_shadows_system_entry(self, user_dir, system_dir):
        write_entry(user_dir, "org.example.Mail.desktop", desktop("My Mail"))
        write_entry(system_dir, "org.example.Mail.desktop", desktop("Mail"))

        apps = enumerate_ids(user_dir, system_dir)

        assert apps["org.example.Mail"].load_label() == "My Mail"

    def test_hidden_user_entry_hides_system_entry(self, user_dir, system_dir):
        write_entry(user_dir, "org.example.Mail.desktop", desktop(extra="Hidden=true"))
        write_entry(system_dir, "org.example.Mail.desktop", desktop("Mail"))

        assert enumerate_ids(user_dir, system_dir) == {}

    def test_subdirectory_ids(self, system_dir):
        write_entry(system_dir / "kde", "org.kde.Viewer.desktop", desktop("Viewer"))
        assert "kde-org.kde.Viewer" in enumerate_ids(system_dir)

    def test_missing_directory_ignored(self, tmp_path, system_dir):
        write_entry(system_dir, "org.example.Mail.desktop", desktop("Mail"))
        assert list(enumerate_ids(tmp_path / "nope", system_dir)) == ["org.example.Mail"]

    @pytest.mark.parametrize("exec_line,expected", [
        ("env LANG=C /opt/tool/bin/tool --flag", "tool"),
        ('"/opt/My App/run" %f', "run"),
        ("", "default"),
    ])
    def test_activity_from_exec(self, system_dir, exec_line, expected):
        write_entry(system_dir, "org.example.Tool.desktop", desktop("Tool", exec_line))
        assert enumerate_ids(system_dir)["org.example.Tool"].activity_name == expected

    def test_unreadable_entry_still_yielded(self, system_dir):
        write_entry(system_dir, "org.example.Broken.desktop", "this is not an ini file")

        apps = enumerate_ids(system_dir)

        assert apps["org.example.Broken"].activity_name == "default"


class TestCatalogIntegration:
    def test_broken_and_nameless_entries_dropped(self, system_dir):
        write_entry(system_dir, "org.example.Mail.desktop", desktop("Mail"))
        write_entry(system_dir, "org.example.Broken.desktop", "this is not an ini file")
        write_entry(system_dir, "org.example.Nameless.desktop", "[Desktop Entry]\nType=Application\nExec=x\n")
        catalog = ApplicationCatalogCache(DesktopEntryEnumerator([system_dir]))

        snapshot = catalog.get_all()

        assert [entry.package_name for entry in snapshot] == ["org.example.Mail"]
        assert snapshot.complete is True
        assert catalog.get_statistics()["skipped_entries"] == 2


def test_desktop_file_id(tmp_path):
    assert desktop_file_id(tmp_path / "a" / "b.c.desktop", tmp_path) == "a-b.c"


def test_xdg_application_dirs(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_DATA_DIRS", "/opt/share::/usr/share")

    assert xdg_application_dirs() == [
        tmp_path / "data" / "applications",
        Path("/opt/share/applications"),
        Path("/usr/share/applications"),
    ]
