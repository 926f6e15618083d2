from __future__ import annotations

from pluginlens_core.providers.base import BaseCompletionClient


class AnthropicCompletionClient(BaseCompletionClient):
    def __init__(
        self,
        api_key: str,
        model: str,
        max_output_tokens: int,
        temperature: float = 0.2,
        base_url: str | None = None,
    ):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'pluginlens[anthropic]'"
            )
        super().__init__(model=model, max_output_tokens=max_output_tokens, temperature=temperature)
        client_kwargs = {"api_key": api_key}
        if base_url:
            client_kwargs["base_url"] = base_url
        self.client = Anthropic(**client_kwargs)

    def request_params(self, prompt: str) -> dict:
        # max_tokens is mandatory on the messages API, so only temperature is
        # subject to the capability table here.
        params: dict = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_output_tokens,
        }
        if self.capabilities.sampling_params:
            params["temperature"] = self.temperature
        return params

    def _call_api(self, prompt: str) -> str:
        # Imported inside the method because the anthropic package is optional;
        # __init__ already validated it is installed before we reach here.
        from anthropic.types import TextBlock

        response = self.client.messages.create(**self.request_params(prompt))
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()
