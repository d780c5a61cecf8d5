"""提示词工具。

- load_system_prompt: 从 prompts/<locale> 目录读取默认 system prompt。
- build_advice_prompt: 根据四段自由文本生成“无燃气住宅”能源改造咨询提示词，
  空白输入用固定的兜底句子代替。
"""

from pathlib import Path
from typing import Optional


PROMPTS_DIR = Path(__file__).resolve().parent


def load_system_prompt(locale: str = "en") -> str:
    """按语言加载默认 system prompt 文本（去掉首尾空白）。"""

    fname = PROMPTS_DIR / locale / "default_system.md"
    return fname.read_text(encoding="utf-8").strip()


HOME_FALLBACK = "Not provided; ask about year of construction, home type, insulation and floor area."
USAGE_FALLBACK = "Not provided; ask about annual gas/electricity use and current installations."
LOCATION_FALLBACK = "No location given; assume a typical temperate climate profile and grid load."
DATA_SOURCES_FALLBACK = (
    "No online data supplied; rely on generic assumptions and state which data is still needed."
)


def normalize_input(value: Optional[str], fallback: str = "") -> str:
    trimmed = value.strip() if isinstance(value, str) else ""
    return trimmed or fallback


def build_advice_prompt(
    home_description: Optional[str],
    usage_details: Optional[str],
    location: Optional[str],
    data_sources: Optional[str],
) -> str:
    """拼装多段式咨询提示词。"""

    bullet_lines = "\n".join([
        f"- Home: {normalize_input(home_description, HOME_FALLBACK)}",
        f"- Usage/installations: {normalize_input(usage_details, USAGE_FALLBACK)}",
        f"- Location/climate: {normalize_input(location, LOCATION_FALLBACK)}",
        f"- Data/preferences: {normalize_input(data_sources, DATA_SOURCES_FALLBACK)}",
    ])
    return "\n".join([
        "You are an energy advisor specialised in making homes independent of natural gas.",
        "Draw up an optimised roadmap with concrete measures, ordering, investment estimates and expected savings.",
        "Use public weather data, grid load and typical home profiles to fill gaps, and ask targeted follow-up questions where needed.",
        "Available input:",
        bullet_lines,
        "Deliver three scenarios: (1) quick wins/low budget, (2) balanced, (3) maximally future-proof.",
        "Per scenario: insulation, ventilation, heating (all-electric or hybrid heat pump), generation (PV), "
        "storage/controls, subsidies, payback period, CO2 reduction, comfort impact and grid congestion concerns.",
        "Finish with required surveys/permits, the order of steps, a checklist for the contractor/installer "
        "and measurement points to track progress.",
    ])
