"""
Tests for filter and status command module.
"""

from notifilter.commands.filtering import cmd_filter_check, cmd_filter_simulate, cmd_status


class TestFilterCheck:
    """Tests for cmd_filter_check (dry run)."""

    def test_allowed(self, make_args, write_allow_list):
        write_allow_list({"allowed_contacts": ["老婆"]})

        result = cmd_filter_check(make_args(title="老婆 - [语音] 2", source_app=None))

        assert result["decision"] == "passthrough"
        assert result["identity"] == "老婆"
        assert result["source_app"] == "com.tencent.mm"

    def test_not_allowed(self, make_args, write_allow_list):
        write_allow_list({"allowed_contacts": ["老婆"]})

        result = cmd_filter_check(make_args(title="同事 说了什么", source_app=None))

        assert result["decision"] == "suppressed"
        assert result["identity"] == "同事"

    def test_empty_list(self, make_args):
        result = cmd_filter_check(make_args(title="老婆", source_app=None))

        assert result["decision"] == "suppressed"
        assert result["reason"] == "allow-list is empty"

    def test_other_source_app(self, make_args):
        result = cmd_filter_check(make_args(title="同事", source_app="com.other.app"))

        assert result["decision"] == "ignored"
        assert result["source_app"] == "com.other.app"

    def test_no_side_effects(self, make_args, allow_list_path):
        cmd_filter_check(make_args(title="同事", source_app=None))
        assert not allow_list_path.exists()


class TestFilterSimulate:
    """Tests for cmd_filter_simulate against the in-memory device."""

    def test_mixed_titles(self, make_args, write_allow_list):
        write_allow_list({"allowed_contacts": ["老婆"]})

        result = cmd_filter_simulate(
            make_args(
                titles=["老婆 - [语音] 2", "同事 说了什么", "老板 在吗"],
                initial_mode="priority",
                no_policy_access=False,
            )
        )

        assert result["status"] == "ok"
        assert result["restore_delay_ms"] == 500
        decisions = [event["decision"] for event in result["events"]]
        assert decisions == ["passthrough", "suppressed", "suppressed"]
        assert result["cancelled"] == ["sim|1", "sim|2"]

        # Overlapping suppressions override once and restore once
        assert result["filter_history"] == ["none", "priority"]
        assert result["events"][1]["interruption_filter_after"] == "none"
        assert result["final_interruption_filter"] == "priority"

    def test_without_policy_access(self, make_args):
        result = cmd_filter_simulate(
            make_args(titles=["同事"], initial_mode="all", no_policy_access=True)
        )

        assert result["cancelled"] == ["sim|0"]
        assert result["filter_history"] == []
        assert result["final_interruption_filter"] == "all"

    def test_invalid_mode(self, make_args):
        result = cmd_filter_simulate(
            make_args(titles=["同事"], initial_mode="silent", no_policy_access=False)
        )
        assert result["error"] == "invalid_mode"


class TestStatus:
    """Tests for cmd_status."""

    def test_missing_file(self, make_args):
        result = cmd_status(make_args())

        assert result["source_app"] == "com.tencent.mm"
        assert result["allow_list"]["exists"] is False
        assert result["restore_delay"] == "500ms"
        assert result["allow_list"]["readable"] is True
        assert result["suppress_all"] is True

    def test_populated(self, make_args, write_allow_list):
        write_allow_list({"allowed_contacts": ["老婆"]})

        result = cmd_status(make_args())

        assert result["allow_list"]["count"] == 1
        assert result["suppress_all"] is False

    def test_corrupt(self, make_args, write_allow_list):
        write_allow_list("{broken")

        result = cmd_status(make_args())

        assert result["allow_list"]["readable"] is False
        assert result["allow_list"]["error"]
        assert result["suppress_all"] is True

    def test_source_app_from_env(self, make_args, monkeypatch):
        from notifilter.core.config import reset_settings

        monkeypatch.setenv("NOTIFILTER_SOURCE_APP", "org.telegram.messenger")
        reset_settings()

        assert cmd_status(make_args())["source_app"] == "org.telegram.messenger"
