from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from pluginlens_core.providers.base import BaseCompletionClient


class OpenAICompletionClient(BaseCompletionClient):
    """Chat completions against OpenAI or any OpenAI-compatible endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_output_tokens: int,
        temperature: float = 0.2,
        base_url: str | None = None,
    ):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. "
                "Install it with: pip install 'pluginlens[openai]'"
            )
        super().__init__(model=model, max_output_tokens=max_output_tokens, temperature=temperature)
        client_kwargs = {"api_key": api_key}
        if base_url:
            client_kwargs["base_url"] = base_url
        self.client = _OpenAI(**client_kwargs)

    def request_params(self, prompt: str) -> dict:
        params: dict = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }
        capabilities = self.capabilities
        if capabilities.text_response_format:
            params["response_format"] = {"type": "text"}
        if capabilities.sampling_params:
            params["temperature"] = self.temperature
            params["max_tokens"] = self.max_output_tokens
        return params

    def _call_api(self, prompt: str) -> str:
        response = self.client.chat.completions.create(**self.request_params(prompt))
        return response.choices[0].message.content or ""
