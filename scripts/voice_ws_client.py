"""
Terminal stand-in for the browser voice SDK.

Connects to the live interview socket, fakes call-start, sends typed answers
as final candidate transcripts and prints what the interviewer says.
Run: python -m scripts.voice_ws_client <interview_id> <user_id>
"""
import sys
import os
import json

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import websocket

from mockprep.core.security import create_access_token


def main(interview_id: str, user_id: str, host: str = "127.0.0.1:8000"):
    token = create_access_token({"sub": user_id})
    ws = websocket.WebSocket()
    ws.connect(f"ws://{host}/ws/interview/{interview_id}?token={token}&userName=Candidate")

    print("✅ Connected to interview socket")

    while True:
        frame = json.loads(ws.recv())
        kind = frame.get("type")

        if kind == "start":
            print(f"📋 Questions:\n{frame['config']['questions']}")
            ws.send(json.dumps({"type": "call-start"}))
        elif kind == "say":
            print("🤖 Interviewer:", frame["message"])
            answer = input("You (blank to hang up): ").strip()
            if not answer:
                ws.send(json.dumps({"type": "call-end"}))
                continue
            ws.send(json.dumps({
                "type": "message",
                "role": "user",
                "transcriptType": "final",
                "transcript": answer,
            }))
        elif kind == "stop":
            print("📞 Interviewer ended the call")
            ws.send(json.dumps({"type": "call-end"}))
        elif kind == "feedback":
            print("✅ Feedback ready:", frame["feedbackId"])
            break
        elif kind == "error":
            print("❌ Error:", frame["error"])
            break

    ws.close()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python -m scripts.voice_ws_client <interview_id> <user_id> [host]")
        sys.exit(1)
    main(*sys.argv[1:4])
