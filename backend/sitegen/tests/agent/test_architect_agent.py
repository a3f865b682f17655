import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from sitegen.agent.architect_agent import ArchitectAgent, MockArchitectAgent, build_architect_prompt
from sitegen.agent.artifacts import BusinessInput, SiteSpecification

BUSINESS = BusinessInput(
    business_name="Sharma Optics",
    address="12 MG Road, Sector 14",
    city="Gurugram",
    state="Haryana",
    business_category="Optician",
    description="Family-run optical store offering eye tests, frames and contact lenses since 1998.",
    phone="+91 98765-43210",
    hours={"Mon-Sat": "10am - 8pm"},
)


def _fake_llm(output):
    llm = MagicMock()
    llm.generate_text = AsyncMock(return_value=output)
    return llm


def test_prompt_contains_business_facts_and_placeholder_note():
    prompt = build_architect_prompt(BUSINESS)

    assert "Sharma Optics" in prompt
    assert "Optician" in prompt
    assert "12 MG Road, Sector 14, Gurugram, Haryana" in prompt
    assert "+91 98765-43210" in prompt
    assert "Mon-Sat: 10am - 8pm" in prompt
    assert "Owner**: Not provided" in prompt
    assert '"website_generation_prompt"' in prompt


@pytest.mark.asyncio
async def test_json_output_is_parsed_into_specification():
    payload = {
        "website_generation_prompt": "Build a calm, clinical site for an optician.",
        "site_style_guidelines": {"primary_color": "#0f766e", "tone": "professional"},
        "page_sections": [{"section_id": "hero", "section_name": "Hero"}],
    }
    llm = _fake_llm(f"```json\n{json.dumps(payload)}\n```")

    spec = await ArchitectAgent(llm=llm).run(BUSINESS)

    assert isinstance(spec, SiteSpecification)
    assert spec.website_generation_prompt == payload["website_generation_prompt"]
    assert spec.business_name == "Sharma Optics"
    assert spec.site_style_guidelines.primary_color == "#0f766e"
    assert spec.page_sections[0].section_id == "hero"
    llm.generate_text.assert_awaited_once()


@pytest.mark.asyncio
async def test_non_json_output_becomes_the_instruction_text():
    llm = _fake_llm("```\nMake it blue and friendly.\n```")

    spec = await ArchitectAgent(llm=llm).run(BUSINESS)

    assert spec.website_generation_prompt == "Make it blue and friendly."
    assert spec.business_name == "Sharma Optics"
    assert spec.site_style_guidelines is None


def test_schema_mismatch_falls_back_to_raw_text():
    raw = '{"site_style_guidelines": {"primary_color": "blue"}}'

    spec = ArchitectAgent.parse_specification(raw, "Sharma Optics")

    assert spec.website_generation_prompt == raw
    assert spec.business_name == "Sharma Optics"


@pytest.mark.asyncio
async def test_llm_errors_propagate():
    llm = MagicMock()
    llm.generate_text = AsyncMock(side_effect=RuntimeError("quota exceeded"))

    with pytest.raises(RuntimeError, match="quota exceeded"):
        await ArchitectAgent(llm=llm).run(BUSINESS)


@pytest.mark.asyncio
async def test_mock_architect_is_deterministic():
    first = await MockArchitectAgent().run(BUSINESS)
    second = await MockArchitectAgent().run(BUSINESS)

    assert first == second
    assert "Sharma Optics" in first.website_generation_prompt
    assert "Gurugram" in first.website_generation_prompt
    assert first.site_style_guidelines.primary_color == "#2563eb"
    assert [section.section_id for section in first.page_sections] == [
        "hero",
        "about",
        "services",
        "gallery",
        "testimonials",
        "contact",
        "footer",
    ]
