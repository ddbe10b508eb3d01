"""
Voice session plumbing.

The voice SDK runs in the browser. It relays its call lifecycle events over a
WebSocket; those are parsed into typed events and pushed onto a
VoiceEventChannel, which the SessionConductor drains. Control goes the other
way through a VoiceClient (start / say / stop).
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Annotated, List, Literal, Optional, Union

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


# -------------------------
# Events (voice SDK -> conductor)
# -------------------------

class CallStarted(BaseModel):
    type: Literal["call-start"] = "call-start"


class CallEnded(BaseModel):
    type: Literal["call-end"] = "call-end"


class SpeechStarted(BaseModel):
    type: Literal["speech-start"] = "speech-start"


class SpeechEnded(BaseModel):
    type: Literal["speech-end"] = "speech-end"


class TranscriptMessage(BaseModel):
    type: Literal["message"] = "message"
    role: str
    transcript: str
    transcript_type: Literal["partial", "final"] = Field("final", alias="transcriptType")

    class Config:
        populate_by_name = True


class VoiceError(BaseModel):
    type: Literal["error"] = "error"
    error: str = "Unknown voice error"


VoiceEvent = Annotated[
    Union[CallStarted, CallEnded, SpeechStarted, SpeechEnded, TranscriptMessage, VoiceError],
    Field(discriminator="type"),
]

_voice_event_adapter = TypeAdapter(VoiceEvent)


def parse_voice_event(payload: dict) -> VoiceEvent:
    """Validate a raw event payload. Raises pydantic.ValidationError on unknown shapes."""
    return _voice_event_adapter.validate_python(payload)


class VoiceEventChannel:
    """Queue of voice events for one session. ``None`` marks a closed channel."""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def push(self, event: VoiceEvent) -> None:
        if self.closed:
            logger.debug(f"Dropping {event.type} event on closed channel")
            return
        self._queue.put_nowait(event)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(None)

    async def get(self) -> Optional[VoiceEvent]:
        return await self._queue.get()


# -------------------------
# Control (conductor -> voice SDK)
# -------------------------

class VoiceSessionConfig(BaseModel):
    """Variables handed to the voice workflow when a call starts."""
    interview_id: str = Field(..., alias="interviewId")
    user_name: str = Field(..., alias="userName")
    questions: str = Field(..., description="Questions formatted one per line with '- ' markers")
    workflow_id: Optional[str] = Field(None, alias="workflowId")

    class Config:
        populate_by_name = True

    @classmethod
    def for_interview(cls, interview_id: str, user_name: str, questions: List[str], workflow_id: Optional[str] = None):
        return cls(
            interview_id=interview_id,
            user_name=user_name,
            questions="\n".join(f"- {q}" for q in questions),
            workflow_id=workflow_id,
        )


class VoiceDisconnected(Exception):
    """The voice side hung up; commands can no longer be delivered."""


class VoiceClient(ABC):
    """
    Control operations of the external voice session service.

    Implementations raise VoiceDisconnected when the call is already gone.
    """

    @abstractmethod
    async def start(self, session_config: VoiceSessionConfig) -> None:
        pass

    @abstractmethod
    async def say(self, text: str) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass


class WebSocketVoiceBridge(VoiceClient):
    """VoiceClient backed by the browser's WebSocket connection."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def start(self, session_config: VoiceSessionConfig) -> None:
        await self.send({"type": "start", "config": session_config.model_dump(by_alias=True)})

    async def say(self, text: str) -> None:
        await self.send({"type": "say", "message": text})

    async def stop(self) -> None:
        await self.send({"type": "stop"})

    async def send(self, payload: dict) -> None:
        try:
            await self.websocket.send_json(payload)
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            raise VoiceDisconnected(f"Could not send {payload.get('type')}: {type(e).__name__}") from e

    async def pump(self, channel: VoiceEventChannel) -> None:
        """Forward incoming WebSocket messages to ``channel`` until the socket closes."""
        try:
            while True:
                raw = await self.websocket.receive_text()
                try:
                    event = parse_voice_event(json.loads(raw))
                except (json.JSONDecodeError, ValidationError) as e:
                    logger.warning(f"Ignoring malformed voice event: {type(e).__name__}: {raw[:100]!r}")
                    continue
                channel.push(event)
        except WebSocketDisconnect:
            logger.info("Voice WebSocket disconnected")
        finally:
            channel.close()
