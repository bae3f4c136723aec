"""
Tests for Archie response parsing and prompt-input helpers.
"""
from archie.workflows.archie_flow.config import CONTENT_TRUNCATION_LIMIT
from archie.workflows.archie_flow.utils import (
    file_list,
    last_user_message,
    parse_llm_response,
    summarize_files,
    user_is_done,
)


# ============================================================================
# parse_llm_response
# ============================================================================

class TestParseLLMResponse:
    """<agent>/<system> splitting never raises, it only warns."""

    def test_both_sections(self):
        text = (
            "<agent>Which database do you use?</agent>\n"
            "<system>{\"entities\": [{\"name\": \"Postgres\", \"type\": \"datastore\", \"tags\": [\"sql\"]}],"
            " \"relationships\": []}</system>"
        )

        parsed = parse_llm_response(text)

        assert parsed.agent_response == "Which database do you use?"
        assert parsed.system_context["entities"] == [{
            "name": "Postgres",
            "type": "datastore",
            "description": "",
            "tags": ["sql"],
            "properties": {},
        }]
        assert parsed.warnings == []

    def test_untagged_text_is_whole_agent_reply(self):
        parsed = parse_llm_response("  Just a plain answer.  ")

        assert parsed.agent_response == "Just a plain answer."
        assert parsed.system_context is None
        assert parsed.warnings

    def test_agent_only(self):
        parsed = parse_llm_response("<agent>Hi</agent>")

        assert parsed.agent_response == "Hi"
        assert parsed.system_context is None

    def test_malformed_system_json_keeps_agent_part(self):
        parsed = parse_llm_response("<agent>Hi</agent><system>{oops</system>")

        assert parsed.agent_response == "Hi"
        assert parsed.system_context is None
        assert any("JSON" in w for w in parsed.warnings)

    def test_system_must_be_object(self):
        parsed = parse_llm_response("<agent>Hi</agent><system>[1, 2]</system>")

        assert parsed.system_context is None

    def test_invalid_items_are_dropped(self):
        text = (
            "<agent>ok</agent><system>{"
            "\"entities\": [{\"name\": \"a\", \"type\": \"t\"}, {\"name\": \"\", \"type\": \"t\"}, {\"type\": \"t\"}, \"junk\"],"
            "\"relationships\": [{\"from\": \"a\", \"to\": \"b\", \"type\": \"uses\"}, {\"from\": \"a\", \"type\": \"uses\"}]"
            "}</system>"
        )

        parsed = parse_llm_response(text)

        assert [e["name"] for e in parsed.system_context["entities"]] == ["a"]
        assert parsed.system_context["relationships"] == [
            {"from": "a", "to": "b", "type": "uses", "properties": {}}
        ]
        assert len(parsed.warnings) == 4

    def test_multiline_sections(self):
        parsed = parse_llm_response("<agent>\nline one\nline two\n</agent>")

        assert parsed.agent_response == "line one\nline two"


# ============================================================================
# Prompt inputs
# ============================================================================

def test_summarize_files_empty():
    assert summarize_files({}) == "No files provided."


def test_summarize_files_truncates_long_content():
    long_text = "x" * (CONTENT_TRUNCATION_LIMIT + 50)

    summary = summarize_files({"big.md": long_text, "small.txt": "tiny"})

    assert summary.startswith("--- File: big.md ---\n")
    assert "x" * CONTENT_TRUNCATION_LIMIT + "..." in summary
    assert "x" * (CONTENT_TRUNCATION_LIMIT + 1) not in summary
    assert summary.endswith("--- File: small.txt ---\ntiny")


def test_file_list():
    assert file_list({}) == "None"
    assert file_list({"a.md": "", "b.txt": ""}) == "a.md, b.txt"


def test_user_is_done_is_case_insensitive_containment():
    assert user_is_done("solution approved")
    assert user_is_done("I think we are Done here")
    assert user_is_done("okay bye then")
    assert not user_is_done("Let's continue with the queue design")


def test_last_user_message():
    history = [
        {"role": "user", "content": "first"},
        {"role": "agent", "content": "question"},
        {"role": "user", "content": "second"},
        {"role": "agent", "content": "another"},
    ]

    assert last_user_message(history) == "second"
    assert last_user_message([]) == ""
