"""
Tests unitaires des dataclasses métier.
"""
from relay_proxy.core.models import (
    TOOL_RESULT_BLOCK,
    AggregateResult,
    ChunkFields,
    Complexity,
    ConversationMessage,
    Usage,
)


class TestConversationMessage:

    def test_string_content(self):
        message = ConversationMessage.from_dict({"role": "user", "content": "hello"})
        assert message.text() == "hello"
        assert not message.is_tool_only()

    def test_text_blocks_joined_with_space(self):
        message = ConversationMessage.from_dict({
            "role": "user",
            "content": [
                {"type": "text", "text": "first"},
                {"type": "image"},
                {"type": "text", "text": "second"},
            ]
        })
        assert message.text() == "first second"

    def test_tool_only_message(self):
        message = ConversationMessage.from_dict({
            "role": "user",
            "content": [{"type": "tool_result", "content": "ok"}]
        })
        assert message.is_tool_only()
        assert message.has_tool_activity()
        assert message.blocks[0].type == TOOL_RESULT_BLOCK

    def test_malformed_message_is_empty(self):
        message = ConversationMessage.from_dict("not a message")
        assert message.role is None
        assert message.text() == ""
        assert message.blocks == ()


class TestComplexity:

    def test_ordering(self):
        assert Complexity.SIMPLE < Complexity.MODERATE < Complexity.COMPLEX
        assert max(Complexity) == Complexity.COMPLEX

    def test_string_value(self):
        assert Complexity("moderate") is Complexity.MODERATE
        assert Complexity.COMPLEX.value == "complex"


class TestUsage:

    def test_total_defaults_to_sum(self):
        usage = Usage.from_dict({"prompt_tokens": 10, "completion_tokens": 5})
        assert usage.total_tokens == 15

    def test_non_numeric_is_absent(self):
        assert Usage.from_dict({"prompt_tokens": "10", "completion_tokens": 5}) is None
        assert Usage.from_dict({"prompt_tokens": True, "completion_tokens": 5}) is None
        assert Usage.from_dict(None) is None


class TestChunkFields:

    def test_full_chunk(self):
        fields = ChunkFields.from_chunk({
            "model": "m",
            "choices": [{"delta": {"content": "hi"}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3}
        })
        assert fields.model == "m"
        assert fields.content == "hi"
        assert fields.finish_reason == "stop"
        assert fields.usage == Usage(1, 2, 3)

    def test_malformed_fields_are_none(self):
        fields = ChunkFields.from_chunk({"model": 42, "choices": [{"delta": {"content": 7}}]})
        assert fields == ChunkFields()

    def test_non_object_chunk(self):
        assert ChunkFields.from_chunk([1, 2]) is None


def test_aggregate_result_to_dict_omits_absent_fields():
    assert AggregateResult(content="x").to_dict() == {"content": "x"}
