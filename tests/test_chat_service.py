"""
Tests for ChatCompletionService.
"""

import pytest

from talentrank.core.exceptions import AuthenticationError, TransientProviderError
from talentrank.core.utils.retry import RetryController
from talentrank.models.chat import ChatMessage
from talentrank.models.ranking import ResumeMatch
from talentrank.services.chat_service import (
    GENERAL_FALLBACK_REPLY,
    NO_MATCHES_REPLY,
    ChatCompletionService,
    fallback_summary,
)

JOB_DESCRIPTION = (
    "We are looking for a senior Python developer with 5 years of experience in Django and AWS"
)


@pytest.fixture
def service(fake_client, recording_sleep):
    return ChatCompletionService(fake_client, RetryController(sleep=recording_sleep))


@pytest.fixture
def matches():
    return [
        ResumeMatch(document_id="1", filename="jane.pdf", similarity=0.87, content="Python, Django"),
        ResumeMatch(document_id="2", filename="john.docx", similarity=0.6423, content=None),
    ]


class TestClassification:
    @pytest.mark.parametrize("text", ["hello", "Good morning", "thanks!", "", "what's up"])
    def test_small_talk_is_not_a_matching_request(self, service, text):
        assert service.should_show_matches(text) is False

    def test_job_description_is_a_matching_request(self, service):
        assert service.should_show_matches(JOB_DESCRIPTION) is True

    def test_contact_question_is_not_a_matching_request(self, service):
        text = "What is the email for John_Resume.docx? We are hiring a senior developer."
        assert service.should_show_matches(text) is False

    def test_short_text_with_job_terms_is_not_enough(self, service):
        assert service.should_show_matches("senior developer role") is False

    def test_long_text_without_job_terms(self, service):
        assert service.should_show_matches("Tell me a story about a dragon and a castle by the sea") is False


class TestAnalysisReplies:
    @pytest.mark.asyncio
    async def test_analysis_prompt(self, service, fake_client, matches):
        fake_client.complete_script = ["## Analysis"]

        reply = await service.respond(JOB_DESCRIPTION, matches)

        assert reply == "## Analysis"
        call = fake_client.complete_calls[0]
        assert call["max_tokens"] == 1500
        assert call["temperature"] == 0.3
        system, user = call["messages"]
        assert system["role"] == "system"
        assert "Analyze all 2 resumes" in system["content"]
        assert "**Resume 1: jane.pdf** (87% match)" in user["content"]
        assert "**Resume 2: john.docx** (64% match)" in user["content"]
        assert "Content not available" in user["content"]
        assert JOB_DESCRIPTION in user["content"]

    def test_previews_are_capped(self, service):
        long_match = ResumeMatch(document_id="1", filename="a.pdf", similarity=0.5, content="x" * 2000)

        _, user = service.build_analysis_messages(JOB_DESCRIPTION, [long_match])

        assert "x" * 1500 + "..." in user["content"]
        assert "x" * 1501 not in user["content"]

    @pytest.mark.asyncio
    async def test_no_matches_gives_fixed_reply(self, service, fake_client):
        assert await service.respond(JOB_DESCRIPTION, []) == NO_MATCHES_REPLY
        assert fake_client.complete_calls == []

    @pytest.mark.asyncio
    async def test_provider_failure_falls_back_to_summary(
        self, service, fake_client, recording_sleep, matches
    ):
        fake_client.complete_script = [
            TransientProviderError("503", status=503),
            TransientProviderError("503", status=503),
        ]

        reply = await service.respond(JOB_DESCRIPTION, matches)

        assert len(fake_client.complete_calls) == 2
        assert recording_sleep.delays == [1.5]
        assert reply == fallback_summary(matches)
        assert reply.startswith("I found 2 matching resumes for your job description:")
        assert "**1. jane.pdf** - 87% match" in reply
        assert "**2. john.docx** - 64% match" in reply

    @pytest.mark.asyncio
    async def test_empty_completion_gets_default_text(self, service, fake_client, matches):
        fake_client.complete_script = [""]
        reply = await service.respond(JOB_DESCRIPTION, matches)
        assert reply == "I found matching resumes for your job description."


class TestGeneralReplies:
    @pytest.mark.asyncio
    async def test_general_question(self, service, fake_client):
        fake_client.complete_script = ["Ask about trade-offs."]

        reply = await service.respond("What is a good interview question?", [])

        assert reply == "Ask about trade-offs."
        call = fake_client.complete_calls[0]
        assert call["max_tokens"] == 800
        assert call["temperature"] == 0.5
        assert call["messages"][-1] == {
            "role": "user",
            "content": "What is a good interview question?",
        }

    def test_only_recent_history_is_sent(self, service):
        history = [
            ChatMessage(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}")
            for i in range(8)
        ]

        messages = service.build_general_messages("and now?", history)

        assert len(messages) == 1 + 6 + 1
        assert messages[1]["content"] == "turn 2"
        assert messages[-2] == {"role": "assistant", "content": "turn 7"}

    def test_previous_matches_are_added_as_context(self, service, matches):
        history = [
            ChatMessage(role="user", content=JOB_DESCRIPTION),
            ChatMessage(role="assistant", content="Here is the analysis", matches=matches),
        ]

        messages = service.build_general_messages("What is Jane's strongest skill?", history)

        assistant = messages[2]["content"]
        assert assistant.startswith("Here is the analysis")
        assert "[Previous resume analysis context:" in assistant
        assert "jane.pdf (87% match) - Resume content: Python, Django" in assistant

    @pytest.mark.asyncio
    async def test_authentication_failure_is_not_retried(self, service, fake_client, recording_sleep):
        fake_client.complete_script = [AuthenticationError("bad token", status=401)]

        reply = await service.respond("What is a good interview question?", [])

        assert reply == GENERAL_FALLBACK_REPLY
        assert len(fake_client.complete_calls) == 1
        assert recording_sleep.delays == []
