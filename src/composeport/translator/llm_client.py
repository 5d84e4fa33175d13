"""
LLM client for AI-assisted conversion.

Units scored as too complex for the rule-based generator can be handed to
Ollama, OpenRouter or OpenAI. The reply is taken verbatim as the Dart file.
"""

import logging
import os
import re

import ollama
from dotenv import load_dotenv
from openai import OpenAI

from composeport.config.models import AIConfig, ConventionOptions, LLMProvider

load_dotenv()

logger = logging.getLogger(__name__)

_DART_BLOCK = re.compile(r"```[dD]art\s*\n([\s\S]*?)\n```")


class AIConversionError(RuntimeError):
    """The AI collaborator failed or returned nothing usable."""


def strip_markdown_code_blocks(text: str) -> str:
    """
    Extract code from an LLM reply.

    Prefers a ```dart fenced block anywhere in the reply; otherwise strips a
    fence wrapping the whole reply (```lang ... ```).
    """
    match = _DART_BLOCK.search(text)
    if match:
        return match.group(1).strip()

    text = text.strip()
    match = re.match(r"^```(?:\w+)?\s*\n?(.*?)\n?```$", text, re.DOTALL)
    if match:
        return match.group(1).strip()
    return text


class BaseLLMClient:
    """Prompt construction shared by the providers."""

    def __init__(self, config: AIConfig):
        self.config = config

    def _create_system_prompt(self, options: ConventionOptions) -> str:
        return f"""You are an expert mobile engineer converting Jetpack Compose (Kotlin) code to Flutter (Dart).

REQUIREMENTS:
1. Preserve the UI structure, the state behaviour and every public name
2. Composable functions become StatelessWidget or StatefulWidget classes
3. Use {options.state_management.value} for app-level state management
4. Use {options.navigation.value} for navigation
5. Use {options.networking.value} for networking
6. Use {options.image_loading.value} for loading remote images
7. Include every import the file needs
8. Return the complete Dart file in a single ```dart code block
"""

    def _build_conversion_prompt(self, source_text: str, unit_path: str) -> str:
        return "\n".join(
            [
                f"Convert the following Kotlin file ({unit_path}) to Dart:",
                "",
                "```kotlin",
                source_text,
                "```",
            ]
        )

    def convert_unit(self, source_text: str, options: ConventionOptions, unit_path: str = "") -> str:
        """Convert one unit's raw text; raises AIConversionError on any failure."""
        messages = [
            {"role": "system", "content": self._create_system_prompt(options)},
            {"role": "user", "content": self._build_conversion_prompt(source_text, unit_path)},
        ]
        logger.debug(f"Requesting AI conversion of {unit_path or 'unit'} from {self.config.model}")
        try:
            content = self._call_llm(messages)
        except Exception as e:
            raise AIConversionError(f"LLM API call failed for {unit_path or 'unit'}: {e}") from e

        code = strip_markdown_code_blocks(content or "")
        if not code:
            raise AIConversionError(f"LLM returned no code for {unit_path or 'unit'}")
        return code

    def _call_llm(self, messages: list[dict[str, str]]) -> str:
        raise NotImplementedError


class OllamaClient(BaseLLMClient):
    """Client for Ollama LLM API."""

    def __init__(self, config: AIConfig):
        super().__init__(config)
        self.client = ollama.Client(host=config.host, timeout=config.timeout)

    def _call_llm(self, messages: list[dict[str, str]]) -> str:
        response = self.client.chat(
            model=self.config.model,
            messages=messages,
            options={"temperature": self.config.temperature},
        )
        return response["message"]["content"]


class OpenRouterClient(BaseLLMClient):
    """Client for OpenAI-compatible APIs (OpenRouter, OpenAI)."""

    OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(self, config: AIConfig, base_url: str | None = OPENROUTER_BASE_URL):
        super().__init__(config)
        api_key = config.api_key or os.environ.get("OPENROUTER_API_KEY") or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("API key required (set ai.api_key or OPENROUTER_API_KEY / OPENAI_API_KEY)")

        client_kwargs = {"api_key": api_key, "timeout": config.timeout}
        if base_url is not None:
            client_kwargs["base_url"] = base_url
        self.client = OpenAI(**client_kwargs)

    def _call_llm(self, messages: list[dict[str, str]]) -> str:
        response = self.client.chat.completions.create(
            model=self.config.model,
            messages=messages,
            temperature=self.config.temperature,
        )
        return response.choices[0].message.content or ""


def create_llm_client(config: AIConfig) -> BaseLLMClient:
    """Factory function to create the appropriate LLM client based on provider."""
    if config.provider == LLMProvider.OPENROUTER:
        return OpenRouterClient(config)
    elif config.provider == LLMProvider.OPENAI:
        return OpenRouterClient(config, base_url=None)
    elif config.provider == LLMProvider.OLLAMA:
        return OllamaClient(config)
    else:
        raise ValueError(f"Unsupported LLM provider: {config.provider}")
