"""LLM Provider 集成层。

- base: Provider 抽象接口。
- registry: Provider 默认配置。
- openai_client: OpenAI chat/completions 适配器。
"""

from typing import Optional

from chat_relay.config.settings import settings
from chat_relay.providers.base import ProviderClient
from chat_relay.providers.openai_client import OpenAIClient
from chat_relay.providers.registry import get_provider_config


def create_provider(name: Optional[str] = None, cfg=settings) -> ProviderClient:
    """根据名称创建 Provider 实例，默认 openai；未知名称抛出 KeyError。"""

    provider_cfg = get_provider_config(name or "openai")
    return OpenAIClient(cfg, provider_cfg)
