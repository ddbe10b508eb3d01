"""
Session conductor for live AI mock interviews.

``advance`` decides, for one candidate utterance, what the interviewer says
next and whether to move on or end. It is stateless: question index and
transcript are passed in by the caller.

``SessionConductor`` drives one voice session on top of it. It drains the
session's VoiceEventChannel, keeps the transcript and question index, and
returns the finished transcript from ``run()``.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from fastapi.concurrency import run_in_threadpool

from mockprep.core import config
from mockprep.core.errors import ConversationFailed, ValidationFailed
from mockprep.db.models.interview import AiInterview
from mockprep.llm.provider import LLMProvider
from mockprep.llm.router import get_model_for_feature, CONVERSATION
from mockprep.schemas.interview import ROLE_ALIASES, TranscriptTurn
from mockprep.services.voice_session import (
    CallEnded,
    CallStarted,
    SpeechEnded,
    SpeechStarted,
    TranscriptMessage,
    VoiceClient,
    VoiceDisconnected,
    VoiceError,
    VoiceEventChannel,
    VoiceSessionConfig,
)

logger = logging.getLogger(__name__)

MOVE_TO_NEXT = "MOVE_TO_NEXT"
STAY_ON_CURRENT = "STAY_ON_CURRENT"
END_INTERVIEW = "END_INTERVIEW"
CONTROL_TOKENS = (MOVE_TO_NEXT, STAY_ON_CURRENT, END_INTERVIEW)

WRAP_UP_MESSAGE = "We have completed all the questions. Let's wrap up the interview. Thank you for your time."
RETRY_MESSAGE = "Sorry, I didn't quite catch that. Could you say that again?"


@dataclass
class TurnDecision:
    message: str
    move_to_next: bool = False
    end_interview: bool = False


def build_turn_prompt(
    interview: AiInterview,
    question: str,
    user_utterance: str,
    history: List[TranscriptTurn],
) -> str:
    conversation = "\n\n".join(f"{turn.role.upper()}: {turn.content}" for turn in history)
    return f"""You are an AI interviewer conducting a {interview.type} interview for a {interview.level} {interview.role} position.

The technologies relevant to this position are: {", ".join(interview.tech_stack)}.

Your task is to:
1. Evaluate the candidate's response to the current question
2. Provide a follow-up based on their answer or ask for clarification if needed
3. Decide if it's time to move to the next question

Current question: "{question}"

If the candidate has fully answered the question and provided sufficient detail, you may move to the next question.
If the answer was incomplete or needs elaboration, ask a follow-up question related to the same topic.

Important:
- Maintain a professional interviewer tone
- Keep responses concise (max 2-3 sentences)
- Do not explain that you are an AI
- Do not provide the correct answer or critique the response yet (save feedback for the end)

In your response, include exactly one of these flags:
- {MOVE_TO_NEXT} if we should move to the next question
- {STAY_ON_CURRENT} if we need more information on the current question
- {END_INTERVIEW} if this was the final question or we've covered enough ground

Conversation history:
{conversation}

CANDIDATE: {user_utterance}"""


def interpret_reply(reply: str) -> TurnDecision:
    """Read control tokens out of the model reply and strip every occurrence of them."""
    message = reply or ""
    move_to_next = MOVE_TO_NEXT in message
    end_interview = END_INTERVIEW in message
    for token in CONTROL_TOKENS:
        message = message.replace(token, "")
    return TurnDecision(
        message=" ".join(message.split()),
        move_to_next=move_to_next,
        end_interview=end_interview,
    )


def advance(
    provider: LLMProvider,
    interview: AiInterview,
    current_question_index: int,
    user_utterance: str,
    transcript: List[TranscriptTurn],
    history_window: Optional[int] = None,
) -> TurnDecision:
    """
    Decide the interviewer's next move after a candidate utterance.

    Once every question has been asked (index == number of questions) the
    fixed wrap-up message is returned without calling the LLM.

    Raises:
        ValidationFailed: for a negative question index
        ConversationFailed: if the LLM call fails or times out
    """
    if current_question_index < 0:
        raise ValidationFailed("Invalid question index")
    if current_question_index >= len(interview.questions):
        return TurnDecision(message=WRAP_UP_MESSAGE, end_interview=True)

    if history_window is None:
        history_window = config.TRANSCRIPT_WINDOW
    history = transcript[-history_window:] if history_window > 0 else []

    prompt = build_turn_prompt(
        interview,
        interview.questions[current_question_index],
        user_utterance,
        history,
    )

    try:
        reply = provider.complete(prompt, model=get_model_for_feature(CONVERSATION), temperature=0.7)
    except Exception as e:
        logger.error(f"Conversation turn failed for interview {interview.id}: {type(e).__name__}: {e}", exc_info=True)
        raise ConversationFailed() from e

    decision = interpret_reply(reply)
    logger.debug(
        f"Turn decided: interview={interview.id}, question={current_question_index}, "
        f"move_to_next={decision.move_to_next}, end={decision.end_interview}"
    )
    return decision


class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    ACTIVE = "active"
    FINISHED = "finished"


class InvalidSessionState(RuntimeError):
    pass


class VoiceConnectionFailed(ConversationFailed):
    default_message = "Voice connection failed"


class SessionConductor:
    """Runs one voice interview session."""

    def __init__(
        self,
        provider: LLMProvider,
        interview: AiInterview,
        voice: VoiceClient,
        channel: VoiceEventChannel,
        user_name: str = "there",
        history_window: Optional[int] = None,
        workflow_id: Optional[str] = None,
    ):
        self.provider = provider
        self.interview = interview
        self.voice = voice
        self.channel = channel
        self.user_name = user_name
        self.history_window = history_window
        self.workflow_id = workflow_id

        self.state = SessionState.IDLE
        self.question_index = 0
        self.transcript: List[TranscriptTurn] = []
        self.is_speaking = False
        self._handed_off = False

    async def start(self) -> None:
        if self.state != SessionState.IDLE:
            raise InvalidSessionState(f"Cannot start a session that is {self.state.value}")
        self.state = SessionState.CONNECTING
        session_config = VoiceSessionConfig.for_interview(
            self.interview.id, self.user_name, self.interview.questions, self.workflow_id
        )
        await self.voice.start(session_config)
        logger.info(f"Voice session connecting: interview={self.interview.id}")

    async def run(self) -> Optional[List[TranscriptTurn]]:
        """
        Start the call and process events until the session finishes.

        Returns the transcript the first time the session finishes and None
        on any later call. A hang-up noticed while sending to the voice side
        ends the session like a call-end event.

        Raises:
            VoiceConnectionFailed: if the voice service reports an error
                before the call started; the session is back to idle and
                ``run()`` may be called again
        """
        if self.state == SessionState.FINISHED:
            return self._hand_off()

        try:
            await self.start()
            while self.state != SessionState.FINISHED:
                event = await self.channel.get()
                await self.handle_event(event)
        except VoiceDisconnected as e:
            logger.info(f"Voice side gone: interview={self.interview.id}: {e}")
            self.finish()
        return self._hand_off()

    async def handle_event(self, event) -> None:
        if event is None or isinstance(event, CallEnded):
            self.finish()
        elif isinstance(event, CallStarted):
            await self._on_call_started()
        elif isinstance(event, SpeechStarted):
            self.is_speaking = True
        elif isinstance(event, SpeechEnded):
            self.is_speaking = False
        elif isinstance(event, TranscriptMessage):
            await self._on_transcript(event)
        elif isinstance(event, VoiceError):
            self._on_error(event)

    async def end(self) -> None:
        """Stop the call from our side."""
        if self.state == SessionState.FINISHED:
            return
        await self.voice.stop()
        self.finish()

    def finish(self) -> None:
        if self.state != SessionState.FINISHED:
            self.state = SessionState.FINISHED
            logger.info(
                f"Voice session finished: interview={self.interview.id}, turns={len(self.transcript)}"
            )

    def _hand_off(self) -> Optional[List[TranscriptTurn]]:
        if self._handed_off:
            return None
        self._handed_off = True
        return list(self.transcript)

    async def _on_call_started(self) -> None:
        if self.state != SessionState.CONNECTING:
            logger.debug(f"Ignoring call-start while {self.state.value}")
            return
        self.state = SessionState.ACTIVE
        opening = (
            f"Hello {self.user_name}, thanks for joining. Let's get started. "
            f"{self.interview.questions[0]}"
        )
        await self._speak(opening)

    async def _on_transcript(self, event: TranscriptMessage) -> None:
        if self.state != SessionState.ACTIVE or event.transcript_type != "final":
            return
        if ROLE_ALIASES.get(event.role.strip().lower()) != "candidate":
            # Interviewer turns are recorded when we speak them
            return
        if not event.transcript.strip():
            return
        turn = TranscriptTurn(role="candidate", content=event.transcript.strip())

        history = list(self.transcript)
        self.transcript.append(turn)
        try:
            decision = await run_in_threadpool(
                advance,
                self.provider,
                self.interview,
                self.question_index,
                turn.content,
                history,
                self.history_window,
            )
        except ConversationFailed:
            # Drop the turn so the candidate's repeat is processed as the same turn
            self.transcript.pop()
            logger.warning(f"Turn failed, asking candidate to repeat: interview={self.interview.id}")
            await self.voice.say(RETRY_MESSAGE)
            return

        if decision.message:
            await self._speak(decision.message)
        if decision.move_to_next:
            self.question_index += 1
        if decision.end_interview:
            await self.end()

    def _on_error(self, event: VoiceError) -> None:
        if self.state == SessionState.CONNECTING:
            self.state = SessionState.IDLE
            logger.error(f"Voice connection failed: interview={self.interview.id}: {event.error}")
            raise VoiceConnectionFailed()
        logger.warning(f"Voice error during session: interview={self.interview.id}: {event.error}")

    async def _speak(self, text: str) -> None:
        self.transcript.append(TranscriptTurn(role="interviewer", content=text))
        await self.voice.say(text)
