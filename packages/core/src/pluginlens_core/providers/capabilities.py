"""Per-model request shaping.

Some models served behind OpenAI-compatible endpoints reject sampling
parameters. Rather than branching on model names at call sites, each known
exception is listed here; any model not listed gets the default capabilities.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ModelCapabilities:
    # Whether temperature / max-output-tokens may be sent.
    sampling_params: bool = True
    # Whether to request plain text explicitly via response_format.
    text_response_format: bool = False


DEFAULT_CAPABILITIES = ModelCapabilities()

MODEL_CAPABILITIES: dict[str, ModelCapabilities] = {
    "qwen3-235b-a22b-fp8": ModelCapabilities(sampling_params=False, text_response_format=True),
}


def capabilities_for(model: str) -> ModelCapabilities:
    """Look up capabilities by exact identifier, then by a known identifier contained in ``model``.

    The containment match lets gateway-prefixed names such as
    ``qwen/qwen3-235b-a22b-fp8`` resolve to the same entry.
    """
    if model in MODEL_CAPABILITIES:
        return MODEL_CAPABILITIES[model]
    for identifier, capabilities in MODEL_CAPABILITIES.items():
        if identifier in model:
            return capabilities
    return DEFAULT_CAPABILITIES
