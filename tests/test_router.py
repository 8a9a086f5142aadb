"""Tests for keyword intent classification and dispatch."""

import pytest

from fakes import EchoAgent, user_message
from switchboard.ai.router import CODE_KEYWORDS, SEARCH_KEYWORDS, Router, classify_intent
from switchboard.core.types import Intent


@pytest.fixture
def router():
    return Router(
        general=EchoAgent("general"),
        web_search=EchoAgent("web_search"),
        code_execution=EchoAgent("code_execution"),
    )


class TestClassifyIntent:
    def test_empty_message_list_is_general(self):
        assert classify_intent([]) is Intent.GENERAL

    @pytest.mark.parametrize("keyword", SEARCH_KEYWORDS)
    def test_each_search_keyword(self, keyword):
        assert classify_intent([user_message(f"tell me about {keyword} please")]) is Intent.WEB_SEARCH

    @pytest.mark.parametrize("keyword", CODE_KEYWORDS)
    def test_each_code_keyword(self, keyword):
        assert classify_intent([user_message(f"{keyword} this for me")]) is Intent.CODE_EXECUTION

    def test_search_wins_over_code(self):
        text = "Write python code to find the latest stock price"
        assert classify_intent([user_message(text)]) is Intent.WEB_SEARCH

    def test_no_keywords_is_general(self):
        assert classify_intent([user_message("Hello, how are you?")]) is Intent.GENERAL

    def test_case_insensitive(self):
        assert classify_intent([user_message("BITCOIN?")]) is Intent.WEB_SEARCH
        assert classify_intent([user_message("Compute 2+2")]) is Intent.CODE_EXECUTION

    def test_substring_match(self):
        # "running" contains "run"
        assert classify_intent([user_message("I went running today")]) is Intent.CODE_EXECUTION

    def test_only_last_message_counts(self):
        messages = [
            user_message("search the news"),
            {"role": "assistant", "content": "Here you go"},
            user_message("thanks!"),
        ]
        assert classify_intent(messages) is Intent.GENERAL

    def test_structured_content_uses_first_text_part(self):
        content = [
            {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "AAAA"}},
            {"type": "text", "text": "calculate the area"},
            {"type": "text", "text": "latest news"},
        ]
        assert classify_intent([user_message(content)]) is Intent.CODE_EXECUTION

    def test_structured_content_without_text_is_general(self):
        content = [{"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "AAAA"}}]
        assert classify_intent([user_message(content)]) is Intent.GENERAL


class TestRouter:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Hello", "general"),
            ("What's the latest bitcoin price", "web_search"),
            ("execute this script", "code_execution"),
        ],
    )
    async def test_route_and_route_stream_agree(self, router, text, expected):
        messages = [user_message(text)]
        one_shot = await router.route(messages)
        streamed = [fragment async for fragment in router.route_stream(messages)]
        assert one_shot == expected
        assert streamed == [expected]

    def test_every_intent_has_an_agent(self, router):
        assert {router.agent_for(intent).name for intent in Intent} == {
            "general",
            "web_search",
            "code_execution",
        }

    def test_unknown_intent_falls_back_to_general(self, router):
        assert router.agent_for("translation").name == "general"

    def test_plain_string_intent_is_accepted(self, router):
        assert router.agent_for("web_search").name == "web_search"
