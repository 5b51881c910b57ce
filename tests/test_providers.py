import httpx
import pytest

from core.llm.providers.chatgpt import ChatGPTAdapter
from core.llm.providers.claude import ClaudeAdapter
from core.llm.providers.copilot import CopilotAdapter
from core.llm.providers.gemini import GeminiAdapter
from core.llm.transport import HTTPTransport
from core.registry import provider_registry
from utils.errors import EmptyResponseError, ProviderDispatchError


def test_all_providers_are_registered():
    assert set(provider_registry.keys()) >= {"claude", "chatgpt", "gemini", "copilot"}
    assert provider_registry.get("chatgpt") is ChatGPTAdapter


def test_claude_envelope():
    adapter = ClaudeAdapter(api_key="k", model="claude-test")
    assert adapter.endpoint() == "/v1/messages"
    assert adapter.headers() == {"x-api-key": "k", "anthropic-version": "2023-06-01"}
    assert adapter.build_request("hi") == {
        "model": "claude-test",
        "max_tokens": 4000,
        "messages": [{"role": "user", "content": "hi"}],
    }
    assert adapter.extract_text({"content": [{"type": "text", "text": "Hello"}]}) == "Hello"


def test_chatgpt_envelope():
    adapter = ChatGPTAdapter(api_key="k", model="gpt-test")
    assert adapter.headers() == {"Authorization": "Bearer k"}
    assert adapter.build_request("hi")["max_tokens"] == 4000
    assert adapter.extract_text({"choices": [{"message": {"content": "Hello"}}]}) == "Hello"


def test_gemini_envelope():
    adapter = GeminiAdapter(api_key="k", model="gemini-test")
    assert adapter.endpoint() == "/models/gemini-test:generateContent"
    assert adapter.headers() == {"x-goog-api-key": "k"}
    assert adapter.build_request("hi") == {
        "contents": [{"parts": [{"text": "hi"}]}],
        "generationConfig": {"maxOutputTokens": 4000},
    }
    data = {"candidates": [{"content": {"parts": [{"text": "Hello"}]}}]}
    assert adapter.extract_text(data) == "Hello"


def test_copilot_envelope():
    adapter = CopilotAdapter(api_key="t", model="gpt-4o")
    assert adapter.headers()["User-Agent"] == "aipr"
    assert adapter.endpoint() == "/chat/completions"
    assert adapter.build_request("hi")["messages"] == [{"role": "user", "content": "hi"}]


@pytest.mark.parametrize(
    "adapter, data",
    [
        (ClaudeAdapter("k", "m"), {"content": [{"type": "text", "text": ""}]}),
        (ClaudeAdapter("k", "m"), {}),
        (ChatGPTAdapter("k", "m"), {"choices": []}),
        (ChatGPTAdapter("k", "m"), {"choices": [{"message": {"content": None}}]}),
        (GeminiAdapter("k", "m"), {"candidates": [{"content": {"parts": []}}]}),
        (CopilotAdapter("k", "m"), {"choices": [{"message": {}}]}),
        (ChatGPTAdapter("k", "m"), {"choices": [None]}),
        (ChatGPTAdapter("k", "m"), [{"choices": []}]),
        (ClaudeAdapter("k", "m"), {"content": "plain string"}),
        (ClaudeAdapter("k", "m"), {"content": [42]}),
        (GeminiAdapter("k", "m"), {"candidates": [{"content": "oops"}]}),
        (CopilotAdapter("k", "m"), {"choices": "nope"}),
    ],
)
def test_missing_text_raises_empty_response(adapter, data):
    with pytest.raises(EmptyResponseError, match="No content received"):
        adapter.extract_text(data)


@pytest.mark.asyncio
async def test_transport_generate(mocker):
    mock_response = mocker.MagicMock(spec=httpx.Response)
    mock_response.status_code = 200
    mock_response.json.return_value = {"content": [{"type": "text", "text": "Hello from Claude!"}]}
    mock_post = mocker.patch("httpx.AsyncClient.post", return_value=mock_response)

    transport = HTTPTransport(ClaudeAdapter(api_key="k", model="claude-test"))
    result = await transport.generate("Say hi")

    assert result == "Hello from Claude!"
    mock_post.assert_called_once()
    assert mock_post.call_args[0][0] == "/v1/messages"
    assert mock_post.call_args[1]["json"]["model"] == "claude-test"
    await transport.aclose()


def status_error(mocker, status_code, body):
    request = httpx.Request("POST", "https://example.invalid")
    mock_response = mocker.MagicMock(spec=httpx.Response)
    mock_response.status_code = status_code
    mock_response.json.return_value = body
    mock_response.text = str(body)
    mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "error", request=request, response=mock_response
    )
    return mock_response


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code, message",
    [
        (401, "Authentication failed for ChatGPT. Please check your API key."),
        (429, "Rate limit exceeded for ChatGPT"),
        (503, "ChatGPT API server error"),
        (400, "ChatGPT API error: bad model"),
    ],
)
async def test_transport_maps_status_errors(mocker, status_code, message):
    mock_response = status_error(mocker, status_code, {"error": {"message": "bad model"}})
    mocker.patch("httpx.AsyncClient.post", return_value=mock_response)

    transport = HTTPTransport(ChatGPTAdapter(api_key="k", model="m"))
    with pytest.raises(ProviderDispatchError) as exc_info:
        await transport.generate("hi")
    assert message in str(exc_info.value)
    await transport.aclose()


@pytest.mark.asyncio
async def test_transport_timeout(mocker):
    mocker.patch("httpx.AsyncClient.post", side_effect=httpx.ReadTimeout("timed out"))

    transport = HTTPTransport(GeminiAdapter(api_key="k", model="m"))
    with pytest.raises(ProviderDispatchError, match="Gemini API timeout"):
        await transport.generate("hi")
    await transport.aclose()


@pytest.mark.asyncio
async def test_transport_network_error(mocker):
    request = httpx.Request("POST", "https://example.invalid")
    mocker.patch("httpx.AsyncClient.post", side_effect=httpx.ConnectError("refused", request=request))

    transport = HTTPTransport(CopilotAdapter(api_key="k", model="m"))
    with pytest.raises(ProviderDispatchError, match="Network error while contacting Copilot"):
        await transport.generate("hi")
    await transport.aclose()
