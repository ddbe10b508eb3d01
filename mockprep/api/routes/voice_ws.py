import asyncio
import logging
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from mockprep.core import config
from mockprep.core.auth_dependency import get_db, get_llm_provider
from mockprep.core.errors import MockPrepError
from mockprep.core.logging_config import sanitize_log_data
from mockprep.core.security import decode_user_id
from mockprep.services import session_store
from mockprep.services.interview_service import finalize_interview
from mockprep.services.session_conductor import SessionConductor, VoiceConnectionFailed
from mockprep.services.voice_session import VoiceEventChannel, WebSocketVoiceBridge

logger = logging.getLogger(__name__)

router = APIRouter()

POLICY_VIOLATION = 1008


async def _send(websocket: WebSocket, payload: dict) -> bool:
    """Send to the client if it is still listening."""
    try:
        await websocket.send_json(payload)
        return True
    except (WebSocketDisconnect, RuntimeError):
        logger.info(f"Client gone, dropped {payload.get('type')} message")
        return False


# ============================================
# ✅ LIVE VOICE INTERVIEW SOCKET
# ============================================

@router.websocket("/ws/interview/{interview_id}")
async def voice_interview(
    websocket: WebSocket,
    interview_id: str,
    token: str = Query(None),
    user_name: str = Query("there", alias="userName"),
    db: Session = Depends(get_db),
):
    """
    Conduct a voice interview.

    The browser relays voice SDK events (call-start, message, call-end, ...)
    as JSON text frames and follows the start / say / stop commands sent
    back. When the call ends, feedback is generated and its id is sent as
    {"type": "feedback", "feedbackId": ...}.
    """
    logger.info(f"Voice socket requested: interview={interview_id}, params={sanitize_log_data(dict(websocket.query_params))}")
    user_id = decode_user_id(token)
    if user_id is None:
        await websocket.close(code=POLICY_VIOLATION, reason="Unauthorized")
        return

    interview = session_store.get_interview(db, interview_id, user_id=user_id)
    if interview is None:
        await websocket.close(code=POLICY_VIOLATION, reason="Interview not found")
        return

    await websocket.accept()

    existing = session_store.get_feedback(db, interview.id)
    # Give the connection back to the pool for the length of the call;
    # the loaded interview stays usable and finalize checks out a new one.
    db.close()
    if existing is not None:
        await _send(websocket, {"type": "feedback", "feedbackId": existing.id})
        await websocket.close()
        return

    try:
        provider = get_llm_provider(websocket)
    except MockPrepError as e:
        await _send(websocket, {"type": "error", "error": e.message})
        await websocket.close()
        return

    bridge = WebSocketVoiceBridge(websocket)
    channel = VoiceEventChannel()
    conductor = SessionConductor(
        provider,
        interview,
        bridge,
        channel,
        user_name=user_name,
        history_window=config.TRANSCRIPT_WINDOW,
        workflow_id=config.VOICE_WORKFLOW_ID,
    )
    pump = asyncio.create_task(bridge.pump(channel))

    try:
        try:
            transcript = await conductor.run()
        except VoiceConnectionFailed as e:
            await _send(websocket, {"type": "error", "error": e.message})
            return

        if not transcript:
            return

        try:
            feedback = await run_in_threadpool(finalize_interview, db, provider, interview, transcript)
        except MockPrepError as e:
            logger.error(f"Feedback failed after voice session: interview={interview.id}: {e.message}")
            await _send(websocket, {"type": "error", "error": e.message})
            return

        await _send(websocket, {"type": "feedback", "feedbackId": feedback.id})
    finally:
        pump.cancel()
        await asyncio.gather(pump, return_exceptions=True)
        try:
            await websocket.close()
        except RuntimeError:
            pass  # already closed by the client
