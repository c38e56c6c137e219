"""
Chat completion service.

Consumes ranking output: explains matches for job descriptions and
answers general or follow-up questions. Provider failures never reach
the caller; a deterministic fallback text is returned instead.
"""

import re
from typing import Dict, List, Optional, Protocol, Sequence

from talentrank.core.id_generator import generate_id
from talentrank.core.logging import logger
from talentrank.core.tracing import MetricsCollector
from talentrank.core.utils.retry import RETRY_CONFIGS, RetryConfig, RetryController
from talentrank.models.chat import ChatMessage, Role
from talentrank.models.ranking import ResumeMatch


class CompletionClient(Protocol):
    async def complete(
        self,
        messages: List[Dict[str, str]],
        model: str,
        max_tokens: int = ...,
        temperature: float = ...,
    ) -> str: ...


_GREETING = re.compile(
    r"^(hi|hello|hey|good morning|good afternoon|good evening|greetings|sup|what's up|whats up)$",
    re.IGNORECASE,
)
_HIRING_WORDS = re.compile(r"\b(job|position|role|hiring|recruit)\b", re.IGNORECASE)
_CONTACT_QUESTIONS = (
    re.compile(
        r"\b(mail|email|contact|phone|address|details for|info for|information about)\b"
        r".*\.(docx?|pdf|txt)",
        re.IGNORECASE,
    ),
    re.compile(
        r"\b(give me|show me|find|get|what is|whats)\b.*\b(mail|email|contact|phone)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(email|mail)\s+(id|address)?\s+(for|of)\b", re.IGNORECASE),
)
_JOB_KEYWORDS = re.compile(
    r"\b(job description|position|role|candidate|hire|hiring|recruit|looking for|seeking"
    r"|need|require|want)\b",
    re.IGNORECASE,
)
_JOB_CONTEXT = re.compile(
    r"\b(years of experience|skills|requirements|qualifications|responsibilities|developer"
    r"|engineer|manager|analyst|designer|consultant|senior|junior)\b",
    re.IGNORECASE,
)

MIN_JOB_DESCRIPTION_CHARS = 50
SIMPLE_QUESTION_CHARS = 15
HISTORY_PREVIEW_CHARS = 500

ANALYSIS_SYSTEM_PROMPT = """You are an expert resume analyzer and recruiting consultant.
Analyze the actual content of every resume against the specific job requirements.

For each resume:
- List concrete skills and experience that match the job, quoting the resume
- List what is missing or does not match
- Explain why its match percentage is what it is

Analyze all {count} resumes provided. Use markdown: ## for sections, ### for
subsections, #### for each resume header, bullet points for lists.
Finish with hiring recommendations and interview focus areas."""

GENERAL_SYSTEM_PROMPT = """You are a helpful assistant for recruiting, HR and career questions.

You can answer general questions, clarify your previous resume analyses, and
extract specific details (skills, contact information) from resumes shown in
the conversation. Previous turns may carry a [Previous resume analysis context]
section with resume content: use it, never invent resume data or contact details,
and say so when the information is not available.

If the user wants resumes matched, ask for a job description.
Use markdown formatting."""

NO_MATCHES_REPLY = (
    "I couldn't find any resumes in your collection that match this job description. "
    "Please make sure you have uploaded some resumes first, or the job requirements might "
    "be very specific and don't match your current resume collection."
)
GENERAL_FALLBACK_REPLY = (
    "I'm experiencing some temporary issues with my AI service. "
    "Please try asking your question again in a moment."
)


def fallback_summary(matches: Sequence[ResumeMatch]) -> str:
    """Plain listing of the matches, used when the analysis cannot be generated."""
    lines = [
        f"**{index}. {match.filename}** - {match.percent}% match"
        for index, match in enumerate(matches, start=1)
    ]
    return (
        f"I found {len(matches)} matching resumes for your job description:\n\n"
        + "\n".join(lines)
        + "\n\nOur detailed analysis service is temporarily unavailable. "
        "Please try again in a moment for a comprehensive breakdown."
    )


class ChatCompletionService:
    """
    Generates assistant replies.

    - Job descriptions with matches: detailed analysis of each match
    - Job descriptions without matches: fixed "nothing found" reply
    - Anything else: general answer using the recent history
    """

    def __init__(
        self,
        client: CompletionClient,
        retry_controller: RetryController,
        model: str = "gpt-4o-mini",
        retry_config: Optional[RetryConfig] = None,
        analysis_max_tokens: int = 1500,
        analysis_temperature: float = 0.3,
        general_max_tokens: int = 800,
        general_temperature: float = 0.5,
        context_messages: int = 6,
        preview_chars: int = 1500,
    ):
        self.client = client
        self.retry_controller = retry_controller
        self.model = model
        self.retry_config = retry_config or RETRY_CONFIGS["chat_completion"]
        self.analysis_max_tokens = analysis_max_tokens
        self.analysis_temperature = analysis_temperature
        self.general_max_tokens = general_max_tokens
        self.general_temperature = general_temperature
        self.context_messages = context_messages
        self.preview_chars = preview_chars
        self.metrics = MetricsCollector("chat")

    @classmethod
    def from_settings(
        cls, settings, client: CompletionClient, retry_controller: RetryController
    ) -> "ChatCompletionService":
        chat = settings.get("chat")
        return cls(
            client=client,
            retry_controller=retry_controller,
            model=settings.get("provider.chat_model"),
            retry_config=RetryConfig.from_dict(settings.get("retry.chat_completion")),
            analysis_max_tokens=chat["analysis_max_tokens"],
            analysis_temperature=chat["analysis_temperature"],
            general_max_tokens=chat["general_max_tokens"],
            general_temperature=chat["general_temperature"],
            context_messages=chat["context_messages"],
            preview_chars=chat["resume_preview_chars"],
        )

    # ------------------------------------------------------------------
    # Request classification
    # ------------------------------------------------------------------

    def _is_greeting(self, text: str) -> bool:
        return bool(_GREETING.match(text.strip()))

    def _is_simple_question(self, text: str) -> bool:
        return len(text.strip()) < SIMPLE_QUESTION_CHARS and not _HIRING_WORDS.search(text)

    def _is_contact_question(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in _CONTACT_QUESTIONS)

    def should_show_matches(self, text: str) -> bool:
        """True if ``text`` reads like a job description asking for candidates."""
        if not text or self._is_greeting(text) or self._is_simple_question(text):
            return False
        if self._is_contact_question(text):
            return False
        has_job_terms = bool(_JOB_KEYWORDS.search(text) or _JOB_CONTEXT.search(text))
        return len(text) > MIN_JOB_DESCRIPTION_CHARS and has_job_terms

    # ------------------------------------------------------------------
    # Replies
    # ------------------------------------------------------------------

    async def respond(
        self,
        message: str,
        matches: Sequence[ResumeMatch],
        history: Sequence[ChatMessage] = (),
    ) -> str:
        """Reply to ``message``. Never raises for provider failures."""
        if self.should_show_matches(message):
            if not matches:
                return NO_MATCHES_REPLY
            return await self._analysis_reply(message, matches)
        return await self._general_reply(message, history)

    def _preview(self, content: Optional[str], limit: int) -> str:
        if not content:
            return "Content not available - this may affect analysis accuracy"
        return content[:limit] + ("..." if len(content) > limit else "")

    def build_analysis_messages(
        self, job_description: str, matches: Sequence[ResumeMatch]
    ) -> List[Dict[str, str]]:
        details = "".join(
            f"**Resume {index}: {match.filename}** ({match.percent}% match)\n"
            f"Content: {self._preview(match.content, self.preview_chars)}\n\n"
            for index, match in enumerate(matches, start=1)
        )
        user_prompt = (
            "Please analyze these resumes against this job description and explain the "
            "match percentages.\n\n"
            f"**JOB DESCRIPTION:**\n{job_description}\n\n"
            f"**RESUMES TO ANALYZE:**\n{details}"
        )
        return [
            {"role": Role.SYSTEM.value, "content": ANALYSIS_SYSTEM_PROMPT.format(count=len(matches))},
            {"role": Role.USER.value, "content": user_prompt},
        ]

    def build_general_messages(
        self, message: str, history: Sequence[ChatMessage]
    ) -> List[Dict[str, str]]:
        messages = [{"role": Role.SYSTEM.value, "content": GENERAL_SYSTEM_PROMPT}]
        recent = list(history)[-self.context_messages :] if self.context_messages > 0 else []
        for turn in recent:
            content = turn.content
            if turn.matches:
                context = "\n\n".join(
                    f"{match.filename} ({match.percent}% match) - Resume content: "
                    f"{self._preview(match.content, HISTORY_PREVIEW_CHARS)}"
                    for match in turn.matches
                )
                content += f"\n\n[Previous resume analysis context:\n{context}]"
            messages.append({"role": Role(turn.role).value, "content": content})
        messages.append({"role": Role.USER.value, "content": message})
        return messages

    async def _complete(self, messages: List[Dict[str, str]], max_tokens: int, temperature: float) -> str:
        return await self.retry_controller.execute_with_retry(
            lambda: self.client.complete(
                messages, self.model, max_tokens=max_tokens, temperature=temperature
            ),
            operation_id=f"chat_completion:{generate_id()}",
            config=self.retry_config,
        )

    async def _analysis_reply(self, job_description: str, matches: Sequence[ResumeMatch]) -> str:
        messages = self.build_analysis_messages(job_description, matches)
        try:
            content = await self._complete(
                messages, self.analysis_max_tokens, self.analysis_temperature
            )
        except Exception as e:
            self.metrics.increment("fallbacks.analysis")
            logger.error("Resume analysis completion failed", error=str(e), matches=len(matches))
            return fallback_summary(matches)
        self.metrics.increment("replies.analysis")
        return content or "I found matching resumes for your job description."

    async def _general_reply(self, message: str, history: Sequence[ChatMessage]) -> str:
        messages = self.build_general_messages(message, history)
        try:
            content = await self._complete(
                messages, self.general_max_tokens, self.general_temperature
            )
        except Exception as e:
            self.metrics.increment("fallbacks.general")
            logger.error("General chat completion failed", error=str(e))
            return GENERAL_FALLBACK_REPLY
        self.metrics.increment("replies.general")
        return content or "I'm here to help with your questions!"
