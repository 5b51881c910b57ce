import pytest

from core.response_parser import clean_json_response, parse_pr_content, parse_summary


def test_fenced_json_yields_exact_title_and_body():
    content = parse_pr_content('```json\n{"title":"T","body":"B"}\n```')
    assert content.title == "T"
    assert content.body == "B"


def test_fence_without_language_tag():
    content = parse_pr_content('```\n{"title": "PROJ-1: Fix", "body": "Done"}\n```')
    assert (content.title, content.body) == ("PROJ-1: Fix", "Done")


def test_json_embedded_in_prose():
    text = 'Here is the PR:\n{"title": "PROJ-2: Add login", "body": "## Summary\\nLogin"}\nHope this helps!'
    content = parse_pr_content(text)
    assert content.title == "PROJ-2: Add login"
    assert content.body == "## Summary\nLogin"


def test_missing_body_is_coalesced_to_empty_string():
    content = parse_pr_content('{"title": "Only a title"}')
    assert content.title == "Only a title"
    assert content.body == ""


def test_description_is_accepted_as_body():
    content = parse_pr_content('{"title": "T", "description": "D"}')
    assert content.body == "D"


def test_title_marker_in_free_text():
    content = parse_pr_content("Title: Foo\n\nSome body text")
    assert content.title == "Foo"
    assert "Some body text" in content.body


def test_title_marker_is_case_insensitive():
    assert parse_pr_content("TITLE: Bar\nbody").title == "Bar"


@pytest.mark.parametrize(
    "text",
    [
        "",
        "just some words",
        "{not json at all",
        "```\n```",
        None,
        "[" * 100000 + "]" * 100000,
    ],
)
def test_unrecoverable_input_never_raises(text):
    content = parse_pr_content(text)
    assert content.title == ""


def test_oversized_json_number_never_raises():
    content = parse_pr_content('{"title": ' + "1" * 5000 + "}")
    assert isinstance(content.title, str)


def test_clean_json_response_takes_outermost_braces():
    assert clean_json_response('noise {"a": {"b": 1}} trailing') == '{"a": {"b": 1}}'
    assert clean_json_response("no braces here") == "no braces here"


def test_parse_summary_from_json():
    assert parse_summary('```json\n{"summary": "## Overview\\nChanges"}\n```') == "## Overview\nChanges"


def test_parse_summary_from_plain_text_strips_quotes():
    assert parse_summary('"A quoted summary"') == "A quoted summary"
    assert parse_summary("Plain summary text") == "Plain summary text"


def test_parse_summary_keeps_inner_quotes():
    assert parse_summary('Adds the "retry" option') == 'Adds the "retry" option'


def test_parse_summary_never_raises():
    assert parse_summary("") == ""
    assert parse_summary("{broken") == "{broken"
    assert isinstance(parse_summary('{"summary": ' + "1" * 5000 + "}"), str)
