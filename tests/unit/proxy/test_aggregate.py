"""
Tests unitaires de l'agrégation des chunks streaming.
"""
import pytest

from relay_proxy.core.models import Usage
from relay_proxy.proxy.aggregate import (
    aggregate_streaming_response,
    extract_usage_from_response,
)


def delta(content=None, finish_reason=None, **extra):
    choice = {"delta": {} if content is None else {"content": content}}
    if finish_reason is not None:
        choice["finish_reason"] = finish_reason
    return {"choices": [choice], **extra}


class TestAggregate:

    def test_empty(self):
        result = aggregate_streaming_response([])
        assert result.to_dict() == {"content": ""}

    def test_full_stream(self):
        chunks = [
            delta("Hel", model="m-1"),
            delta("lo", model="m-2"),
            delta(finish_reason="stop"),
            {"choices": [], "usage": {"prompt_tokens": 7, "completion_tokens": 2}},
        ]
        result = aggregate_streaming_response(chunks)

        assert result.content == "Hello"
        assert result.model == "m-2"
        assert result.finish_reason == "stop"
        assert result.usage == Usage(prompt_tokens=7, completion_tokens=2, total_tokens=9)
        assert result.to_dict() == {
            "content": "Hello",
            "usage": {"prompt_tokens": 7, "completion_tokens": 2, "total_tokens": 9},
            "model": "m-2",
            "finish_reason": "stop",
        }

    def test_last_usage_wins(self):
        chunks = [
            {"usage": {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2}},
            {"usage": {"prompt_tokens": 5, "completion_tokens": 3, "total_tokens": 10}},
        ]
        assert aggregate_streaming_response(chunks).usage.total_tokens == 10

    def test_malformed_chunks_are_skipped(self):
        chunks = [
            "text",
            None,
            [1, 2],
            {"choices": "nope"},
            {"choices": [None]},
            {"choices": [{"delta": {"content": 42}}]},
            {"usage": {"prompt_tokens": "1", "completion_tokens": 1}},
            {"model": ""},
            delta("ok"),
        ]
        result = aggregate_streaming_response(chunks)
        assert result.to_dict() == {"content": "ok"}

    def test_only_first_choice_is_read(self):
        chunk = {"choices": [{"delta": {"content": "a"}}, {"delta": {"content": "b"}}]}
        assert aggregate_streaming_response([chunk]).content == "a"

    @pytest.mark.parametrize("sizes", [(1,), (3, 4, 5), (1, 1, 1, 1), (10, 2), (7,)])
    def test_splitting_invariance(self, sizes):
        text = "Bonjour, le monde! Ça va? ✓"
        fragments = []
        position = 0
        index = 0
        while position < len(text):
            size = sizes[index % len(sizes)]
            fragments.append(text[position:position + size])
            position += size
            index += 1

        result = aggregate_streaming_response([delta(fragment) for fragment in fragments])
        assert result.content == text


class TestExtractUsageFromResponse:

    def test_openai_format(self):
        response = {"usage": {"prompt_tokens": 100, "completion_tokens": 50, "total_tokens": 150}}
        assert extract_usage_from_response(response) == Usage(100, 50, 150)

    def test_no_usage(self):
        assert extract_usage_from_response({"choices": [{"message": {"content": "Hello"}}]}) is None

    def test_not_an_object(self):
        assert extract_usage_from_response(["usage"]) is None
