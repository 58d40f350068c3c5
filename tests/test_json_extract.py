"""Tests for JSON extraction from free-text model output."""

import pytest
from pydantic import BaseModel

from notely.core.json_extract import (
    InvalidResponseFormatError,
    extract_json_array,
    extract_json_object,
    parse_model_json,
    sanitize_model_text,
)


class _Section(BaseModel):
    title: str
    bullets: list[str] = []


def test_sanitize_strips_code_fence():
    raw = '```json\n{"title": "A"}\n```'
    assert sanitize_model_text(raw) == '{"title": "A"}'


def test_sanitize_strips_control_characters():
    assert sanitize_model_text('\x00{"a": 1}\x07') == '{"a": 1}'


def test_extract_object_ignores_surrounding_prose():
    raw = 'Sure! Here is the note:\n{"title": "Docker", "bullets": ["x"]}\nHope this helps.'
    assert extract_json_object(raw) == {"title": "Docker", "bullets": ["x"]}


def test_extract_object_skips_brace_in_prose():
    raw = 'Use {curly} braces carefully. {"title": "Real"} trailing'
    assert extract_json_object(raw) == {"title": "Real"}


def test_extract_object_allows_raw_newlines_in_strings():
    raw = '{"summary": "line one\nline two"}'
    assert extract_json_object(raw)["summary"] == "line one\nline two"


def test_extract_object_without_braces_fails():
    with pytest.raises(InvalidResponseFormatError) as exc:
        extract_json_object("no json here")
    assert str(exc.value) == "Invalid response format"


def test_extract_object_with_broken_json_fails():
    with pytest.raises(InvalidResponseFormatError):
        extract_json_object('{"title": "unterminated}')


def test_extract_array():
    raw = 'Result: [{"title": "One"}, {"title": "Two"}] done'
    assert extract_json_array(raw) == [{"title": "One"}, {"title": "Two"}]


def test_extract_array_missing_fails():
    with pytest.raises(InvalidResponseFormatError):
        extract_json_array('{"title": "not an array"}')


def test_parse_model_json_validates():
    section = parse_model_json('```\n{"title": "T", "bullets": ["a", "b"]}\n```', _Section)
    assert section.title == "T"
    assert section.bullets == ["a", "b"]


def test_parse_model_json_wrong_shape_is_format_error():
    with pytest.raises(InvalidResponseFormatError):
        parse_model_json('{"heading": "missing title"}', _Section)
