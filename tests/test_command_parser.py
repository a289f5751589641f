"""Tests for chat command parsing."""

import pytest

from tfmatrix.core.command_parser import (
    ACTION_APPLY,
    ACTION_ERROR,
    ACTION_HELP,
    ACTION_PLAN,
    get_help_message,
    parse_command,
    tokenize,
)


class TestTokenize:
    def test_bare_tokens(self):
        assert tokenize("$terraform plan app1  app2") == ["$terraform", "plan", "app1", "app2"]

    def test_quoted_tokens(self):
        assert tokenize('a "b c" \'d e\'') == ["a", "b c", "d e"]


class TestParseCommand:
    def test_plan_without_targets(self):
        parsed = parse_command("$terraform plan")
        assert parsed.action == ACTION_PLAN
        assert parsed.targets == []

    def test_apply_with_targets(self):
        parsed = parse_command("$terraform apply dev/frontend dev/backend")
        assert parsed.action == ACTION_APPLY
        assert parsed.targets == ["dev/frontend", "dev/backend"]

    def test_quoted_target(self):
        parsed = parse_command('$terraform plan "dev/app"')
        assert parsed.targets == ["dev/app"]

    def test_only_first_line_counts(self):
        parsed = parse_command("$terraform plan app1\nplease also look at app2")
        assert parsed.targets == ["app1"]

    def test_surrounding_whitespace(self):
        parsed = parse_command("\n   $terraform plan app1   \n")
        assert parsed.action == ACTION_PLAN
        assert parsed.targets == ["app1"]

    def test_help_ignores_targets(self):
        parsed = parse_command("$terraform help app1")
        assert parsed.action == ACTION_HELP
        assert parsed.targets == []
        assert parsed.message == get_help_message()

    def test_help_message_uses_trigger(self):
        parsed = parse_command("/tf help", trigger="/tf")
        assert "`/tf plan [targets...]`" in parsed.message

    def test_injection_attempt_is_error(self):
        parsed = parse_command("$terraform apply dev/app;rm -rf")
        assert parsed.action == ACTION_ERROR
        assert parsed.targets == []
        assert 'forbidden characters: ";"' in parsed.message
        assert "dev/app;rm" in parsed.message

    def test_dot_dot_is_rejected(self):
        parsed = parse_command("$terraform plan ../secrets")
        assert parsed.action == ACTION_ERROR
        assert 'forbidden characters: "."' in parsed.message

    @pytest.mark.parametrize("body", [
        None,
        "",
        "   \n  ",
        "LGTM",
        "$terraform",
        "$terraform destroy app1",
        "terraform plan",
        "please run $terraform plan",
        "$terraformplan",
    ])
    def test_not_a_command(self, body):
        assert parse_command(body) is None

    def test_custom_trigger(self):
        assert parse_command("$terraform plan", trigger="/tf") is None
        assert parse_command("/tf plan", trigger="/tf").action == ACTION_PLAN
