import pytest

from pagebuilder.llm.json_extract import extract_json_object, strip_code_fences


def test_extract_json_object_plain():
    assert extract_json_object('{"score": 90}') == {"score": 90}


def test_extract_json_object_with_preamble_and_suffix():
    text = 'Sure, here is the verdict:\n\n{"score": 71, "issues": {"a": 1}}\n\nThanks!'
    assert extract_json_object(text) == {"score": 71, "issues": {"a": 1}}


def test_extract_json_object_ignores_braces_in_strings():
    text = 'prefix {"a": "value with } brace", "b": {"c": "{nested} ok"}} suffix'
    assert extract_json_object(text) == {"a": "value with } brace", "b": {"c": "{nested} ok"}}


def test_extract_json_object_tolerates_fences_and_trailing_commas():
    text = '```json\n{"score": 88, "issues": ["x",],}\n```'
    assert extract_json_object(text) == {"score": 88, "issues": ["x"]}


def test_extract_json_object_raises_when_missing():
    with pytest.raises(ValueError):
        extract_json_object("no json here")
    with pytest.raises(ValueError):
        extract_json_object("")


def test_strip_code_fences():
    assert strip_code_fences("```html\n<section>x</section>\n```") == "<section>x</section>"
    assert strip_code_fences("<nav></nav>") == "<nav></nav>"
