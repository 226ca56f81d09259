"""Chat model selection from the environment.

The first provider with a configured key wins:

  DASHSCOPE_API_KEY  DashScope OpenAI-compatible endpoint
  OPENAI_API_KEY     OpenAI
  LLM_API_KEY        any OpenAI-compatible endpoint (set LLM_BASE_URL)

``LLM_MODEL``, ``LLM_BASE_URL`` and ``LLM_TIMEOUT_SECONDS`` override the
provider defaults. Without any key the planner runs in template mode and
``get_llm()`` returns None.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Optional

# (key variable, default base url, default model)
_PROVIDERS: tuple[tuple[str, str, str], ...] = (
    ("DASHSCOPE_API_KEY", "https://dashscope.aliyuncs.com/compatible-mode/v1", "qwen-plus"),
    ("OPENAI_API_KEY", "https://api.openai.com/v1", "gpt-4o-mini"),
    ("LLM_API_KEY", "https://api.openai.com/v1", "gpt-4o-mini"),
)


@dataclass(frozen=True)
class LLMConfig:
    api_key: str
    base_url: str
    model: str
    timeout: float


def resolve_config() -> Optional[LLMConfig]:
    for key_var, base_url, model in _PROVIDERS:
        api_key = (os.getenv(key_var) or "").strip()
        if not api_key:
            continue
        try:
            timeout = float(os.getenv("LLM_TIMEOUT_SECONDS", "45"))
        except ValueError:
            timeout = 45.0
        return LLMConfig(
            api_key=api_key,
            base_url=os.getenv("LLM_BASE_URL") or base_url,
            model=os.getenv("LLM_MODEL") or model,
            timeout=timeout,
        )
    return None


_lock = threading.Lock()
_instance: Optional[object] = None
_resolved = False


def get_llm() -> Optional[object]:
    """Shared ``ChatOpenAI`` client, created on first use."""
    global _instance, _resolved
    with _lock:
        if _resolved:
            return _instance
        cfg = resolve_config()
        if cfg is not None:
            from langchain_openai import ChatOpenAI

            # retries are owned by the orchestrator
            _instance = ChatOpenAI(
                model=cfg.model,
                temperature=0.4,
                api_key=cfg.api_key,
                base_url=cfg.base_url,
                timeout=cfg.timeout,
                max_retries=0,
            )
        _resolved = True
        return _instance


def reset_llm() -> None:
    global _instance, _resolved
    with _lock:
        _instance = None
        _resolved = False


def is_llm_available() -> bool:
    """True when a provider key is configured, without creating a client."""
    return resolve_config() is not None
