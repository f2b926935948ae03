import json

from recipe_manager.app.services import ai_response_parser


def test_chat_completion_plain_string():
    body = json.dumps({"choices": [{"message": {"content": '{"suggestions": []}'}}]})
    assert ai_response_parser.extract_chat_completion_content(body) == '{"suggestions": []}'


def test_chat_completion_array_text_parts():
    body = {
        "choices": [
            {
                "message": {
                    "content": [
                        {"type": "output_text", "text": "Here are suggestions"},
                        {"type": "image", "url": "https://example.com/x.png"},
                        "   ",
                        {"type": "output_text", "text": '{"suggestions":[]}'},
                    ]
                }
            }
        ]
    }
    content = ai_response_parser.extract_chat_completion_content(body)
    assert content == 'Here are suggestions\n{"suggestions":[]}'


def test_chat_completion_missing_content_returns_none():
    assert ai_response_parser.extract_chat_completion_content({"choices": []}) is None
    assert ai_response_parser.extract_chat_completion_content({"choices": [{"message": {}}]}) is None
    assert ai_response_parser.extract_chat_completion_content("not json") is None


def test_messages_text_parts():
    body = json.dumps(
        {
            "content": [
                {"type": "text", "text": "first"},
                {"type": "tool_use", "input": {}},
                "second",
            ]
        }
    )
    assert ai_response_parser.extract_messages_text(body) == "first\nsecond"


def test_messages_text_without_text_parts_returns_none():
    assert ai_response_parser.extract_messages_text({"content": [{"type": "tool_use"}]}) is None
    assert ai_response_parser.extract_messages_text({"content": "plain"}) is None


def test_extract_json_plain_object():
    assert ai_response_parser.extract_json_object_text('  {"a": 1}\n') == '{"a": 1}'


def test_extract_json_handles_code_fence():
    content = '```json\n{"title":"Soup","ingredients":[]}\n```'
    assert ai_response_parser.extract_json_object_text(content) == '{"title":"Soup","ingredients":[]}'


def test_extract_json_handles_embedded_object():
    content = 'Result:\n{"title":"Stew","steps":[]}\nDone.'
    assert ai_response_parser.extract_json_object_text(content) == '{"title":"Stew","steps":[]}'


def test_extract_json_escaped_quotes_do_not_end_scan():
    content = 'Sure! {"reason": "the \\"best\\" } stew", "n": {"x": 1}} trailing'
    text = ai_response_parser.extract_json_object_text(content)
    assert text == '{"reason": "the \\"best\\" } stew", "n": {"x": 1}}'
    assert json.loads(text)["reason"] == 'the "best" } stew'


def test_extract_json_rejects_arrays_and_garbage():
    assert ai_response_parser.extract_json_object_text("[1, 2, 3]") is None
    assert ai_response_parser.extract_json_object_text("no json here") is None
    assert ai_response_parser.extract_json_object_text("{broken") is None
    assert ai_response_parser.extract_json_object_text("") is None
    assert ai_response_parser.extract_json_object_text(None) is None


def test_parse_json_object_returns_dict():
    assert ai_response_parser.parse_json_object('noise {"suggestions": [1]} noise') == {"suggestions": [1]}
