"""Provider 配置。

集中记录每个 Provider 的默认接口地址、默认模型与生成参数，
Settings 中的同名配置优先。
"""

from dataclasses import dataclass
from typing import Mapping


@dataclass
class ProviderConfig:
    name: str
    base_url: str
    default_model: str
    default_temperature: float


OPENAI_CONFIG = ProviderConfig(
    name="openai",
    base_url="https://api.openai.com/v1",
    default_model="gpt-3.5-turbo",
    default_temperature=0.7,
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "openai": OPENAI_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")
