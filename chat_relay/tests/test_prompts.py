from chat_relay.prompts import (
    DATA_SOURCES_FALLBACK,
    HOME_FALLBACK,
    LOCATION_FALLBACK,
    USAGE_FALLBACK,
    build_advice_prompt,
    load_system_prompt,
    normalize_input,
)


def test_default_system_prompt():
    prompt = load_system_prompt()
    assert prompt.startswith("You are ChatGPT, a helpful assistant.")
    assert prompt == prompt.strip()


def test_normalize_input():
    assert normalize_input("  x  ") == "x"
    assert normalize_input("   ", "fb") == "fb"
    assert normalize_input(None, "fb") == "fb"


def test_build_advice_prompt_uses_fallbacks_for_blank_fields():
    prompt = build_advice_prompt("", None, "  ", "")
    lines = prompt.split("\n")
    assert lines[0] == "You are an energy advisor specialised in making homes independent of natural gas."
    assert f"- Home: {HOME_FALLBACK}" in lines
    assert f"- Usage/installations: {USAGE_FALLBACK}" in lines
    assert f"- Location/climate: {LOCATION_FALLBACK}" in lines
    assert f"- Data/preferences: {DATA_SOURCES_FALLBACK}" in lines


def test_build_advice_prompt_keeps_field_order_and_trims():
    prompt = build_advice_prompt(" Detached house, 1975 ", "gas boiler", "Utrecht", "prefers heat pump")
    lines = prompt.split("\n")
    start = lines.index("Available input:")
    assert lines[start + 1:start + 5] == [
        "- Home: Detached house, 1975",
        "- Usage/installations: gas boiler",
        "- Location/climate: Utrecht",
        "- Data/preferences: prefers heat pump",
    ]
    assert lines[start + 5].startswith("Deliver three scenarios")
