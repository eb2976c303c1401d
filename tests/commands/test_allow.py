"""
Tests for allow-list command module.
"""

import json

from notifilter.commands.allow import cmd_allow_add, cmd_allow_list, cmd_allow_remove
from notifilter.core.constants import ACTION_ALLOW_LIST_CHANGED


class TestAllowList:
    """Tests for cmd_allow_list."""

    def test_missing_file_is_empty(self, make_args, allow_list_path):
        result = cmd_allow_list(make_args())

        assert result["status"] == "ok"
        assert result["contacts"] == []
        assert result["count"] == 0
        assert result["file"] == str(allow_list_path)
        assert "query_timestamp" in result

    def test_sorted_contacts(self, make_args, write_allow_list):
        write_allow_list({"allowed_contacts": ["妈妈", "Bob", "Alice"]})

        result = cmd_allow_list(make_args())

        assert result["contacts"] == sorted(["妈妈", "Bob", "Alice"])
        assert result["count"] == 3

    def test_corrupt_file_reports_error(self, make_args, write_allow_list):
        write_allow_list("{broken")

        result = cmd_allow_list(make_args())

        assert result["error"] == "storage_unavailable"
        assert result["status"] == "error"

    def test_default_location(self, make_args, isolated_instance):
        result = cmd_allow_list(make_args(file=None))
        assert result["file"] == str(isolated_instance / "userdata" / "allow_list.json")


class TestAllowAdd:
    """Tests for cmd_allow_add."""

    def test_add(self, make_args, allow_list_path):
        result = cmd_allow_add(make_args(name="老婆", from_title=False))

        assert result["status"] == "ok"
        assert result["added"] == "老婆"
        assert result["contacts"] == ["老婆"]
        assert result["reload_action"] == ACTION_ALLOW_LIST_CHANGED
        assert result["reload_sent"] == 1

        document = json.loads(allow_list_path.read_text(encoding="utf-8"))
        assert document == {"allowed_contacts": ["老婆"]}

    def test_add_from_title(self, make_args):
        result = cmd_allow_add(make_args(name="老婆 - [语音] 2", from_title=True))

        assert result["added"] == "老婆"
        assert result["contacts"] == ["老婆"]

    def test_add_verbatim_without_flag(self, make_args):
        result = cmd_allow_add(make_args(name="Alice Smith", from_title=False))
        assert result["contacts"] == ["Alice Smith"]

    def test_add_blank_fails(self, make_args):
        result = cmd_allow_add(make_args(name="  ", from_title=False))

        assert result["error"] == "add_failed"
        assert "empty" in result["message"]

    def test_blank_title_fails(self, make_args):
        result = cmd_allow_add(make_args(name="   ", from_title=True))
        assert result["error"] == "add_failed"

    def test_add_to_corrupt_file_fails(self, make_args, write_allow_list):
        path = write_allow_list("{broken")

        result = cmd_allow_add(make_args(name="老婆", from_title=False))

        assert result["error"] == "add_failed"
        assert path.read_text(encoding="utf-8") == "{broken"


class TestAllowRemove:
    """Tests for cmd_allow_remove."""

    def test_remove(self, make_args, write_allow_list):
        write_allow_list({"allowed_contacts": ["老婆", "同事"]})

        result = cmd_allow_remove(make_args(name="同事"))

        assert result["status"] == "ok"
        assert result["contacts"] == ["老婆"]
        assert result["reload_sent"] == 1
        assert "warning" not in result

    def test_remove_absent_warns(self, make_args, write_allow_list):
        write_allow_list({"allowed_contacts": ["老婆"]})

        result = cmd_allow_remove(make_args(name="同事"))

        assert result["status"] == "ok"
        assert result["contacts"] == ["老婆"]
        assert "warning" in result

    def test_remove_from_corrupt_file_fails(self, make_args, write_allow_list):
        write_allow_list("[]")

        result = cmd_allow_remove(make_args(name="老婆"))

        assert result["error"] == "remove_failed"
