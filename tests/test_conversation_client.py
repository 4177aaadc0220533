import json
import os
import sys

import httpx
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from relaybot.errors import BackendRejected, BackendUnavailable
from relaybot.models import ReadyState
from relaybot.services.conversations import ConversationClient


class Recorder:
    """httpx MockTransport handler that records requests and replays canned responses."""

    def __init__(self, response=None, status_code=200, exc=None):
        self.requests = []
        self.response = response if response is not None else {}
        self.status_code = status_code
        self.exc = exc

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc:
            raise self.exc
        return httpx.Response(self.status_code, json=self.response)


def make_client(recorder):
    return ConversationClient(
        "sk-test",
        base_url="https://api.example.com/v1",
        transport=httpx.MockTransport(recorder),
    )


@pytest.mark.asyncio
async def test_create_thread_sends_seed_messages_and_headers():
    recorder = Recorder({"id": "thread_abc", "object": "thread"})
    client = make_client(recorder)
    seed = [
        {"role": "user", "content": "Hi, my name is Ada"},
        {"role": "assistant", "content": "Hello!"},
    ]

    thread_id = await client.create_thread(seed)

    assert thread_id == "thread_abc"
    request = recorder.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.example.com/v1/threads"
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert request.headers["OpenAI-Beta"] == "assistants=v2"
    assert json.loads(request.content) == {"messages": seed}


@pytest.mark.asyncio
async def test_post_message_targets_thread():
    recorder = Recorder({"id": "msg_1"})
    client = make_client(recorder)

    await client.post_message("thread_abc", "user", "hello")

    request = recorder.requests[0]
    assert request.url.path == "/v1/threads/thread_abc/messages"
    assert json.loads(request.content) == {"role": "user", "content": "hello"}


@pytest.mark.asyncio
async def test_start_run_parses_status():
    recorder = Recorder({"id": "run_1", "thread_id": "thread_abc", "status": "queued"})
    client = make_client(recorder)

    run = await client.start_run("thread_abc", "asst_1")

    assert run.id == "run_1"
    assert run.ready_state is ReadyState.NOT_READY
    assert json.loads(recorder.requests[0].content) == {"assistant_id": "asst_1"}


@pytest.mark.asyncio
async def test_run_status_classification():
    for status, expected in [
        ("completed", ReadyState.READY),
        ("failed", ReadyState.FAILED),
        ("expired", ReadyState.FAILED),
        ("in_progress", ReadyState.NOT_READY),
    ]:
        client = make_client(Recorder({"id": "run_1", "status": status}))
        run = await client.get_run_status("thread_abc", "run_1")
        assert run.ready_state is expected
        assert run.thread_id == "thread_abc"


@pytest.mark.asyncio
async def test_latest_message_filters_by_run():
    recorder = Recorder({
        "object": "list",
        "data": [{
            "id": "msg_9",
            "role": "assistant",
            "run_id": "run_1",
            "content": [
                {"type": "text", "text": {"value": "Hello Ada", "annotations": []}},
                {"type": "image_file", "image_file": {"file_id": "file_1"}},
            ],
        }],
    })
    client = make_client(recorder)

    message = await client.latest_message("thread_abc", "run_1")

    params = recorder.requests[0].url.params
    assert params["order"] == "desc"
    assert params["limit"] == "1"
    assert params["run_id"] == "run_1"
    assert message.role == "assistant"
    assert [seg.type for seg in message.content] == ["text", "image_file"]
    assert message.content[0].text == "Hello Ada"


@pytest.mark.asyncio
async def test_latest_message_on_empty_thread_is_none():
    client = make_client(Recorder({"object": "list", "data": []}))

    assert await client.latest_message("thread_abc") is None


@pytest.mark.asyncio
async def test_describe_image_returns_text():
    recorder = Recorder({"choices": [{"message": {"role": "assistant", "content": "A red bicycle"}}]})
    client = make_client(recorder)

    text = await client.describe_image("https://files.example/bike.jpg")

    assert text == "A red bicycle"
    body = json.loads(recorder.requests[0].content)
    parts = body["messages"][0]["content"]
    assert parts[0]["type"] == "text"
    assert parts[1] == {"type": "image_url", "image_url": {"url": "https://files.example/bike.jpg"}}


@pytest.mark.asyncio
async def test_describe_image_joins_text_segments():
    content = [
        {"type": "text", "text": {"value": "Line one"}},
        {"type": "image_url", "image_url": {"url": "x"}},
        {"type": "text", "text": "Line two"},
    ]
    client = make_client(Recorder({"choices": [{"message": {"content": content}}]}))

    assert await client.describe_image("https://files.example/a.jpg") == "Line one\nLine two"


@pytest.mark.asyncio
async def test_server_error_is_unavailable():
    client = make_client(Recorder({"error": {"message": "overloaded"}}, status_code=503))

    with pytest.raises(BackendUnavailable):
        await client.create_thread([])


@pytest.mark.asyncio
async def test_network_error_is_unavailable():
    client = make_client(Recorder(exc=httpx.ConnectError("connection refused")))

    with pytest.raises(BackendUnavailable):
        await client.post_message("thread_abc", "user", "hi")


@pytest.mark.asyncio
async def test_client_error_is_rejected_with_backend_message():
    client = make_client(Recorder({"error": {"message": "No assistant found with id 'asst_x'."}}, status_code=404))

    with pytest.raises(BackendRejected) as excinfo:
        await client.start_run("thread_abc", "asst_x")

    assert excinfo.value.status_code == 404
    assert "No assistant found" in str(excinfo.value)


@pytest.mark.asyncio
async def test_malformed_body_is_rejected():
    def handler(request):
        return httpx.Response(200, text="<html>gateway</html>")

    client = ConversationClient("sk-test", transport=httpx.MockTransport(handler))

    with pytest.raises(BackendRejected):
        await client.get_run_status("thread_abc", "run_1")


@pytest.mark.asyncio
async def test_non_object_body_is_rejected():
    client = make_client(Recorder([]))

    with pytest.raises(BackendRejected):
        await client.create_thread([])


@pytest.mark.asyncio
async def test_message_with_string_content_is_rejected():
    client = make_client(Recorder({"data": [{"id": "m", "content": "hello"}]}))

    with pytest.raises(BackendRejected):
        await client.latest_message("thread_abc", "run_1")


@pytest.mark.asyncio
async def test_message_list_that_is_not_a_list_is_rejected():
    client = make_client(Recorder({"data": {"id": "m"}}))

    with pytest.raises(BackendRejected):
        await client.latest_message("thread_abc")


@pytest.mark.asyncio
async def test_stray_content_items_are_skipped():
    recorder = Recorder({"data": [{
        "id": "m",
        "role": "assistant",
        "content": ["junk", {"type": "text", "text": {"value": "kept"}}],
    }]})
    client = make_client(recorder)

    message = await client.latest_message("thread_abc")

    assert [seg.text for seg in message.content] == ["kept"]


@pytest.mark.asyncio
async def test_describe_image_skips_non_object_segments():
    content = ["junk", {"type": "text", "text": "A lighthouse"}]
    client = make_client(Recorder({"choices": [{"message": {"content": content}}]}))

    assert await client.describe_image("https://files.example/a.jpg") == "A lighthouse"


@pytest.mark.asyncio
async def test_describe_image_with_object_content_is_rejected():
    client = make_client(Recorder({"choices": [{"message": {"content": {"text": "odd"}}}]}))

    with pytest.raises(BackendRejected):
        await client.describe_image("https://files.example/a.jpg")
