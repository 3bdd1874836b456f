from __future__ import annotations

import json
import time

from api_fakes import BLOCKING_VIDEO, MUTED_VIDEO


def _submit(client, data: bytes, prompt: str | None = None):
    form = {"prompt": prompt} if prompt is not None else {}
    return client.post(
        "/submissions",
        files={"file": ("clip.mp4", data, "video/mp4")},
        data=form,
    )


def _wait_terminal(client, submission_id: str) -> dict:
    for _ in range(500):
        res = client.get(f"/submissions/{submission_id}")
        assert res.status_code == 200
        body = res.json()
        if body["stage"] in {"done", "failed"}:
            return body
        time.sleep(0.01)
    raise AssertionError("submission did not finish")


def test_submit_and_poll_until_done(client, transcription) -> None:
    res = _submit(client, b"video-bytes", "ffmpeg, transcription")
    assert res.status_code == 202
    sid = res.json()["id"]
    assert res.json()["stage"] in {"received", "transcoding", "transcoded", "stored", "transcribing", "done"}

    body = _wait_terminal(client, sid)

    assert body["stage"] == "done"
    assert body["prompt"] == "ffmpeg, transcription"
    assert body["artifact_id"] == f"vid-{sid[:8]}"
    assert body["artifact_media_type"] == "audio/mpeg"
    assert body["transcript_text"] == f"transcript of vid-{sid[:8]}"
    assert body["error"] is None
    assert [h["stage"] for h in body["history"]] == [
        "received",
        "transcoding",
        "transcoded",
        "stored",
        "transcribing",
        "done",
    ]
    assert transcription.calls == [(f"vid-{sid[:8]}", "ffmpeg, transcription")]


def test_muted_video_fails_with_no_audio_stream(client, store, transcription) -> None:
    sid = _submit(client, MUTED_VIDEO).json()["id"]

    body = _wait_terminal(client, sid)

    assert body["stage"] == "failed"
    assert body["error"]["kind"] == "NoAudioStream"
    assert body["error"]["stage"] == "transcoding"
    assert body["transcript_text"] is None
    assert store.saved == {}
    assert transcription.calls == []


def test_submit_rejects_empty_and_oversized_uploads(client) -> None:
    assert _submit(client, b"").status_code == 400
    assert _submit(client, b"x" * 2048).status_code == 413


def test_unknown_submission_is_404(client) -> None:
    assert client.get("/submissions/missing").status_code == 404
    assert client.post("/submissions/missing/cancel").status_code == 404
    assert client.get("/submissions/missing/events").status_code == 404


def test_cancel_in_flight_submission(client, store) -> None:
    sid = _submit(client, BLOCKING_VIDEO).json()["id"]

    res = client.post(f"/submissions/{sid}/cancel")
    assert res.status_code == 200
    body = res.json()
    assert body["stage"] == "failed"
    assert body["error"]["kind"] == "Cancelled"
    assert store.saved == {}

    # Already terminal.
    assert client.post(f"/submissions/{sid}/cancel").status_code == 409


def test_cancel_finished_submission_conflicts(client) -> None:
    sid = _submit(client, b"video").json()["id"]
    _wait_terminal(client, sid)

    res = client.post(f"/submissions/{sid}/cancel")
    assert res.status_code == 409


def test_events_stream_replays_terminal_snapshot(client) -> None:
    sid = _submit(client, b"video").json()["id"]
    _wait_terminal(client, sid)

    res = client.get(f"/submissions/{sid}/events")
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/event-stream")

    data_lines = [line[len("data:") :].strip() for line in res.text.splitlines() if line.startswith("data:")]
    assert "event: snapshot" in res.text
    assert len(data_lines) == 1
    payload = json.loads(data_lines[0])
    assert payload["id"] == sid
    assert payload["stage"] == "done"
