import logging

from pydantic import ValidationError

from sitegen.agent.artifacts import BusinessInput, PageSection, SiteSpecification, SiteStyleGuidelines
from sitegen.agent.base import BaseAgent, MockAgent
from sitegen.agent.llm_client import LLMClient, parse_json_object, strip_code_fences
from sitegen.agent.prompts.architect import (
    ARCHITECT_PROMPT_TEMPLATE,
    ARCHITECT_SYSTEM_PROMPT,
    MOCK_SPECIFICATION_TEMPLATE,
    NO_PHOTOS_SECTION,
)
from sitegen.core.config import settings

logger = logging.getLogger(__name__)

MOCK_STYLE_GUIDELINES = SiteStyleGuidelines(
    primary_color="#2563eb",
    secondary_color="#f8fafc",
    accent_color="#f59e0b",
    font_heading="Playfair Display",
    font_body="Inter",
    tone="professional",
    layout="single-page",
)

MOCK_PAGE_SECTIONS = [
    PageSection(section_id="hero", section_name="Hero Banner", copy_hints="Business name, tagline, primary CTA"),
    PageSection(section_id="about", section_name="Our Story", copy_hints="Owner intro, business history, values"),
    PageSection(section_id="services", section_name="Services", copy_hints="3-6 service cards with icons"),
    PageSection(section_id="gallery", section_name="Gallery", copy_hints="Photo grid with hover effects"),
    PageSection(section_id="testimonials", section_name="Testimonials", copy_hints="3 reviews with ratings"),
    PageSection(section_id="contact", section_name="Contact Us", copy_hints="Address, form, hours"),
    PageSection(section_id="footer", section_name="Footer", copy_hints="Links, social, copyright"),
]


def _contact_lines(input_data: BusinessInput) -> str:
    lines = []
    if input_data.phone:
        lines.append(f"- **Phone**: {input_data.phone}")
    if input_data.email:
        lines.append(f"- **Email**: {input_data.email}")
    if input_data.website:
        lines.append(f"- **Website**: {input_data.website}")
    return "\n".join(lines)


def _photos_section(input_data: BusinessInput) -> str:
    if not input_data.photos:
        return NO_PHOTOS_SECTION
    entries = [
        f"{idx}. {photo.url}" + (f" ({photo.alt})" if photo.alt else "")
        for idx, photo in enumerate(input_data.photos, start=1)
    ]
    return "## Provided Photos\n" + "\n".join(entries)


def _hours_section(input_data: BusinessInput) -> str:
    if not input_data.hours:
        return ""
    return "## Business Hours\n" + "\n".join(f"- {day}: {time}" for day, time in input_data.hours.items())


def build_architect_prompt(input_data: BusinessInput) -> str:
    return ARCHITECT_PROMPT_TEMPLATE.format(
        business_name=input_data.business_name,
        business_category=input_data.business_category,
        owner_name=input_data.owner_name or "Not provided",
        location=input_data.location,
        contact_lines=_contact_lines(input_data),
        description=input_data.description,
        photos_section=_photos_section(input_data),
        hours_section=_hours_section(input_data),
    ).strip()


class ArchitectAgent(BaseAgent[BusinessInput, SiteSpecification]):
    """
    Agent responsible for turning a validated business profile into a website specification.
    """

    def __init__(self, llm: LLMClient | None = None):
        super().__init__(model_name=settings.MODEL_ARCHITECT or settings.MODEL_DEFAULT, llm=llm)

    @staticmethod
    def parse_specification(raw_output: str, business_name: str) -> SiteSpecification:
        """
        Parse the model output as a specification. Output that is not a valid JSON
        specification is kept verbatim (minus fences) as the instruction text.
        """
        parsed = parse_json_object(raw_output)
        if parsed is not None:
            try:
                spec = SiteSpecification.model_validate(parsed)
                return spec.model_copy(update={"business_name": business_name})
            except ValidationError as exc:
                logger.warning("Architect JSON did not match the specification schema: %s", exc)
        else:
            logger.warning("Architect output was not JSON; using raw text as the generation prompt")
        return SiteSpecification(
            website_generation_prompt=strip_code_fences(raw_output),
            business_name=business_name,
        )

    async def run(self, input_data: BusinessInput) -> SiteSpecification:
        raw_output = await self.llm.generate_text(
            build_architect_prompt(input_data),
            system_prompt=ARCHITECT_SYSTEM_PROMPT,
        )
        return self.parse_specification(raw_output, input_data.business_name)


class MockArchitectAgent(MockAgent[BusinessInput, SiteSpecification]):
    """Fills a fixed specification template from the business profile."""

    async def run(self, input_data: BusinessInput) -> SiteSpecification:
        gallery_hint = (
            f"use the {len(input_data.photos)} provided photos"
            if input_data.photos
            else "use 6 placeholder images from picsum.photos"
        )
        prompt = MOCK_SPECIFICATION_TEMPLATE.format(
            business_name=input_data.business_name,
            business_category=input_data.business_category,
            city=input_data.city,
            state=input_data.state,
            owner_name=input_data.owner_name or "Not provided",
            description=input_data.description,
            location=input_data.location,
            contact_lines=_contact_lines(input_data),
            gallery_hint=gallery_hint,
        ).strip()
        return SiteSpecification(
            website_generation_prompt=prompt,
            business_name=input_data.business_name,
            site_style_guidelines=MOCK_STYLE_GUIDELINES.model_copy(),
            page_sections=[section.model_copy() for section in MOCK_PAGE_SECTIONS],
        )
