"""Tests for generic-to-Ollama message conversion."""

from ollama_bridge.llm.transform import convert_to_ollama_messages


class TestConvertMessages:
    def test_string_content_passthrough(self):
        msgs = [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello!"},
        ]
        assert convert_to_ollama_messages(msgs) == msgs

    def test_text_blocks_joined(self):
        msgs = [{
            "role": "user",
            "content": [
                {"type": "text", "text": "first"},
                {"type": "text", "text": "second"},
            ],
        }]
        assert convert_to_ollama_messages(msgs) == [
            {"role": "user", "content": "first\n\nsecond"},
        ]

    def test_images_moved_to_images_list(self):
        msgs = [{
            "role": "user",
            "content": [
                {"type": "text", "text": "what is this?"},
                {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "AAAA"}},
            ],
        }]
        assert convert_to_ollama_messages(msgs) == [
            {"role": "user", "content": "what is this?", "images": ["AAAA"]},
        ]

    def test_tool_results_come_first(self):
        msgs = [{
            "role": "user",
            "content": [
                {"type": "text", "text": "and now?"},
                {"type": "tool_result", "tool_use_id": "t1", "content": "file.txt"},
                {
                    "type": "tool_result",
                    "tool_use_id": "t2",
                    "content": [{"type": "text", "text": "line 1"}, {"type": "text", "text": "line 2"}],
                },
            ],
        }]
        assert convert_to_ollama_messages(msgs) == [
            {"role": "user", "content": "file.txt"},
            {"role": "user", "content": "line 1\nline 2"},
            {"role": "user", "content": "and now?"},
        ]

    def test_tool_result_only(self):
        msgs = [{"role": "user", "content": [{"type": "tool_result", "content": "ok"}]}]
        assert convert_to_ollama_messages(msgs) == [{"role": "user", "content": "ok"}]

    def test_assistant_tool_use_rendered(self):
        msgs = [{
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Let me look."},
                {"type": "tool_use", "id": "t1", "name": "read_file", "input": {"path": "a.py"}},
            ],
        }]
        assert convert_to_ollama_messages(msgs) == [{
            "role": "assistant",
            "content": 'Let me look.\n\n[Tool Use: read_file]\n{"path": "a.py"}',
        }]

    def test_order_preserved(self):
        msgs = [
            {"role": "user", "content": "1"},
            {"role": "assistant", "content": [{"type": "text", "text": "2"}]},
            {"role": "user", "content": [{"type": "text", "text": "3"}]},
        ]
        assert [m["content"] for m in convert_to_ollama_messages(msgs)] == ["1", "2", "3"]

    def test_empty(self):
        assert convert_to_ollama_messages([]) == []
