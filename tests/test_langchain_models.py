"""Test the LangChain chat model"""

import asyncio
import json
import os
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx2
from langchain_core.messages import (
    AIMessage,
    ChatMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)
from pydantic import BaseModel, Field

from azure_anthropic.config.config import (
    Credentials,
    GenerationSettings,
    Settings,
)
from azure_anthropic.errors import CredentialMissingError
from azure_anthropic.language_models import messages as generic
from azure_anthropic.language_models.client import ClientSettings
from azure_anthropic.language_models.langchain import (
    ChatAzureAnthropic,
    convert_message,
    create_model_from_settings,
    create_model_from_spec,
    langchain_models,
    to_tool_definition,
)

MODULE = "azure_anthropic.language_models.chat_model"
CLIENT_MODULE = "azure_anthropic.language_models.client"

BASE_URL = "https://fake-endpoint.azure.com/anthropic/"
CREDENTIALS = Credentials(api_key="fake-key", base_url=BASE_URL)

TEXT_RESPONSE = {'content': [{'type': "text", 'text': "Hello!"}]}
TOOL_RESPONSE = {
    'content': [
        {
            'type': "tool_use",
            'id': "toolu_1",
            'name': "get_weather",
            'input': {'city': "Paris"},
        }
    ]
}


def _model() -> ChatAzureAnthropic:
    return ChatAzureAnthropic(
        deployment_name="claude-test",
        api_key="fake-key",
        base_url=BASE_URL,
        max_tokens=100,
        temperature=0.7,
    )


def get_weather(city: str) -> str:
    """Get the weather in a city.

    Args:
        city: the name of the city
    """
    return f"Sunny in {city}"


class GetTime(BaseModel):
    """Get the time in a time zone."""

    zone: str = Field(description="The time zone")


# reset at end of testing
def reset_langchain_models():
    langchain_models.clear()


class TestConvertMessage(unittest.TestCase):

    def test_system(self):
        self.assertEqual(
            convert_message(SystemMessage(content="Be brief")),
            generic.SystemMessage(content="Be brief"),
        )

    def test_human(self):
        self.assertEqual(
            convert_message(HumanMessage(content="Hello")),
            generic.HumanMessage(content="Hello"),
        )

    def test_human_content_list(self):
        message = HumanMessage(
            content=["Hello ", {'type': "text", 'text': "world"}]
        )
        self.assertEqual(
            convert_message(message),
            generic.HumanMessage(content="Hello world"),
        )

    def test_ai_text(self):
        self.assertEqual(
            convert_message(AIMessage(content="Hi")),
            generic.AITextMessage(content="Hi"),
        )

    def test_ai_tool_calls(self):
        message = AIMessage(
            content="",
            tool_calls=[
                {'name': "get_weather", 'args': {'city': "Paris"}, 'id': "c1"}
            ],
        )
        self.assertEqual(
            convert_message(message),
            generic.AIToolCallMessage(
                tool_calls=[
                    generic.ToolCall(
                        id="c1", name="get_weather", args={'city': "Paris"}
                    )
                ]
            ),
        )

    def test_tool_message(self):
        self.assertEqual(
            convert_message(ToolMessage(content="Sunny", tool_call_id="c1")),
            generic.ToolResultMessage(tool_call_id="c1", content="Sunny"),
        )

    def test_unsupported(self):
        with self.assertRaises(ValueError):
            convert_message(ChatMessage(role="critic", content="Hmm"))


class TestToolDefinition(unittest.TestCase):

    def test_function(self):
        tool = to_tool_definition(get_weather)
        self.assertEqual(tool.name, "get_weather")
        self.assertIn("weather", tool.description)
        self.assertIn("city", tool.parameters['properties'])

    def test_pydantic_model(self):
        tool = to_tool_definition(GetTime)
        self.assertEqual(tool.name, "GetTime")
        self.assertIn("zone", tool.parameters['properties'])

    def test_anthropic_format(self):
        schema = {'type': "object", 'properties': {}}
        tool = to_tool_definition(
            {'name': "now", 'description': "Time", 'input_schema': schema}
        )
        self.assertEqual(
            tool,
            generic.ToolDefinition(
                name="now", description="Time", parameters=schema
            ),
        )

    def test_definition(self):
        definition = generic.ToolDefinition(name="now")
        self.assertIs(to_tool_definition(definition), definition)


class TestChatAzureAnthropic(unittest.TestCase):

    def test_create(self):
        model = _model()
        self.assertEqual(model.get_name(), "ChatAzureAnthropic")
        self.assertEqual(model.model_name, "claude-test")
        self.assertEqual(model._llm_type, "azure-anthropic")

    def test_missing_credentials(self):
        with self.assertRaises(CredentialMissingError):
            ChatAzureAnthropic(
                deployment_name="claude-test", api_key="", base_url=BASE_URL
            )

    @patch(f"{MODULE}.create_client")
    @patch(f"{MODULE}.send_request")
    def test_invoke(self, mock_send: MagicMock, mock_create: MagicMock):
        mock_send.return_value = TEXT_RESPONSE
        response = _model().invoke(
            [SystemMessage(content="Be brief"), HumanMessage(content="Hi")]
        )
        self.assertIsInstance(response, AIMessage)
        self.assertEqual(response.content, "Hello!")
        self.assertEqual(response.tool_calls, [])

        request = mock_send.call_args.args[1]
        self.assertEqual(
            request.to_params(),
            {
                'model': "claude-test",
                'messages': [{'role': "user", 'content': "Hi"}],
                'max_tokens': 100,
                'temperature': 0.7,
                'system': "Be brief",
            },
        )

    @patch(f"{MODULE}.create_client")
    @patch(f"{MODULE}.send_request")
    def test_invoke_string(self, mock_send: MagicMock, mock_create: MagicMock):
        mock_send.return_value = TEXT_RESPONSE
        response = _model().invoke("Hi")
        self.assertEqual(response.content, "Hello!")

    @patch(f"{MODULE}.create_client")
    @patch(f"{MODULE}.send_request")
    def test_bind_tools(self, mock_send: MagicMock, mock_create: MagicMock):
        mock_send.return_value = TOOL_RESPONSE
        model = _model().bind_tools([get_weather])
        response = model.invoke("What is the weather in Paris?")

        self.assertEqual(len(response.tool_calls), 1)
        call = response.tool_calls[0]
        self.assertEqual(call['name'], "get_weather")
        self.assertEqual(call['args'], {'city': "Paris"})
        self.assertEqual(call['id'], "toolu_1")

        request = mock_send.call_args.args[1]
        params = request.to_params()
        self.assertEqual(params['tools'][0]['name'], "get_weather")
        self.assertIn('input_schema', params['tools'][0])

    def test_tool_choice_not_supported(self):
        with self.assertRaises(ValueError):
            _model().bind_tools([get_weather], tool_choice="any")

    @patch(f"{MODULE}.create_client")
    @patch(f"{MODULE}.send_request")
    def test_stop_not_supported(
        self, mock_send: MagicMock, mock_create: MagicMock
    ):
        with self.assertRaises(ValueError):
            _model().invoke("Hi", stop=["\n"])
        mock_send.assert_not_called()

    @patch(f"{MODULE}.create_client")
    @patch(f"{MODULE}.send_request")
    def test_tool_turn_history(
        self, mock_send: MagicMock, mock_create: MagicMock
    ):
        mock_send.return_value = TEXT_RESPONSE
        _model().invoke(
            [
                HumanMessage(content="Weather in Paris?"),
                AIMessage(
                    content="",
                    tool_calls=[
                        {
                            'name': "get_weather",
                            'args': {'city': "Paris"},
                            'id': "toolu_1",
                        }
                    ],
                ),
                ToolMessage(content="Sunny", tool_call_id="toolu_1"),
            ]
        )
        params = mock_send.call_args.args[1].to_params()
        self.assertEqual(
            [m['role'] for m in params['messages']],
            ["user", "assistant", "user"],
        )
        self.assertEqual(
            params['messages'][2]['content'][0]['tool_use_id'], "toolu_1"
        )


class Endpoint:
    """Stands in for the Azure endpoint, recording the requests and the
    asynchronous clients opened to reach it."""

    def __init__(self):
        self.requests: list[httpx2.Request] = []
        self.clients: list[anthropic.AsyncAnthropic] = []

    def __call__(self, request: httpx2.Request) -> httpx2.Response:
        self.requests.append(request)
        return httpx2.Response(200, json=TEXT_RESPONSE)

    def new_client(
        self, settings: ClientSettings
    ) -> anthropic.AsyncAnthropic:
        client = anthropic.AsyncAnthropic(
            **settings.client_kwargs(),
            http_client=httpx2.AsyncClient(
                transport=httpx2.MockTransport(self)
            ),
        )
        self.clients.append(client)
        return client


class TestChatAzureAnthropicAsync(unittest.IsolatedAsyncioTestCase):

    @patch(f"{MODULE}.async_client")
    @patch(f"{MODULE}.asend_request", new_callable=AsyncMock)
    async def test_ainvoke(self, mock_send: AsyncMock, mock_client: MagicMock):
        mock_send.return_value = TEXT_RESPONSE
        response = await _model().ainvoke("Hi")
        self.assertEqual(response.content, "Hello!")
        mock_send.assert_awaited_once()

    async def test_ainvoke_endpoint(self):
        endpoint = Endpoint()
        with patch(
            f"{CLIENT_MODULE}.new_async_client",
            side_effect=endpoint.new_client,
        ):
            response = await _model().ainvoke("Hi")
        self.assertEqual(response.content, "Hello!")
        request = endpoint.requests[0]
        self.assertEqual(request.url.path, "/anthropic/v1/messages")
        self.assertEqual(json.loads(request.content)['max_tokens'], 100)
        self.assertTrue(endpoint.clients[0].is_closed())


class TestAinvokeEventLoops(unittest.TestCase):

    def test_separate_loops(self):
        endpoint = Endpoint()
        model = _model()
        with patch(
            f"{CLIENT_MODULE}.new_async_client",
            side_effect=endpoint.new_client,
        ):
            first = asyncio.run(model.ainvoke("hello"))
            second = asyncio.run(model.ainvoke("hello"))

        self.assertEqual(first.content, "Hello!")
        self.assertEqual(second.content, "Hello!")
        self.assertEqual(len(endpoint.requests), 2)
        self.assertTrue(all(c.is_closed() for c in endpoint.clients))


class TestModelFactory(unittest.TestCase):

    def setUp(self):
        reset_langchain_models()

    def tearDown(self):
        reset_langchain_models()

    def test_create_from_settings(self):
        settings = GenerationSettings(
            deployment_name="claude-test", max_tokens=100, temperature=0.7
        )
        model = create_model_from_settings(settings, CREDENTIALS)
        self.assertEqual(model.get_name(), "ChatAzureAnthropic")
        self.assertEqual(model.deployment_name, "claude-test")
        self.assertEqual(model.max_tokens, 100)
        self.assertEqual(model.temperature, 0.7)
        self.assertEqual(model.api_key.get_secret_value(), "fake-key")

    def test_create_from_package_settings(self):
        settings = Settings(
            model=GenerationSettings(
                deployment_name="claude-test", max_tokens=200
            ),
            credentials=CREDENTIALS,
        )
        model = create_model_from_settings(settings)
        self.assertEqual(model.deployment_name, "claude-test")
        self.assertEqual(model.max_tokens, 200)
        self.assertEqual(model.base_url, BASE_URL)

    @patch.dict(
        os.environ,
        {
            'AZURE_ANTHROPIC_API_KEY': "env-key",
            'AZURE_ANTHROPIC_BASE_URL': BASE_URL,
        },
    )
    def test_create_default(self):
        model = create_model_from_settings()
        default = Settings().model
        self.assertEqual(model.deployment_name, default.deployment_name)
        self.assertEqual(model.api_key.get_secret_value(), "env-key")

    def test_memoized(self):
        settings = GenerationSettings(deployment_name="claude-test")
        model1 = create_model_from_settings(settings, CREDENTIALS)
        model2 = create_model_from_spec("claude-test", credentials=CREDENTIALS)
        self.assertIs(model1, model2)
        self.assertEqual(len(langchain_models), 1)

        create_model_from_spec(
            "claude-test", temperature=0.2, credentials=CREDENTIALS
        )
        self.assertEqual(len(langchain_models), 2)

    def test_missing_credentials(self):
        with self.assertRaises(CredentialMissingError):
            create_model_from_spec(
                "claude-test",
                credentials=Credentials(api_key="", base_url=BASE_URL),
            )
        self.assertEqual(len(langchain_models), 0)


if __name__ == "__main__":
    unittest.main()
