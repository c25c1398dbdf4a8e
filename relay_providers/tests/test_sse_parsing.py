"""SSE decoding shared by both vendors."""
from __future__ import annotations

from relay_providers.base.streaming import DONE_SENTINEL, StreamAccumulator, iter_sse_data


def test_only_data_lines_are_decoded_in_order():
    lines = [
        b'data: {"n": 1}',
        "event: ping",
        "",
        ": keep-alive comment",
        'data: {"n": 2}',
    ]
    assert [e["n"] for e in iter_sse_data(lines)] == [1, 2]  # nosec B101


def test_done_sentinel_terminates_the_stream():
    lines = ['data: {"n": 1}', f"data: {DONE_SENTINEL}", 'data: {"n": 2}']
    assert list(iter_sse_data(lines)) == [{"n": 1}]  # nosec B101


def test_malformed_json_is_logged_and_skipped(log_events):
    lines = ['data: {"n": 1}', "data: {not json", 'data: {"n": 2}']

    events = list(iter_sse_data(lines))

    assert [e["n"] for e in events] == [1, 2]  # nosec B101
    malformed = log_events.named("stream.malformed_line")
    assert len(malformed) == 1  # nosec B101
    assert malformed[0]["level"] == "WARNING"  # nosec B101


def test_accumulator_delivers_chunks_in_arrival_order(clock):
    seen = []
    acc = StreamAccumulator(seen.append, clock=clock)
    assert not acc.emitted  # nosec B101

    clock.advance(0.25)
    for delta in ("Hel", None, "", "lo", "!"):
        acc.push(delta)

    assert seen == ["Hel", "lo", "!"]  # nosec B101
    assert acc.text == "Hello!"  # nosec B101
    assert acc.chunk_count == 3  # nosec B101
    assert acc.first_chunk_ms == 250.0  # nosec B101
