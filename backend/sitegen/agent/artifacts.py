from typing import Annotated, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, HttpUrl, StringConstraints

PHONE_PATTERN = r"^[+]?[0-9\s\-()]+$"
HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"

ErrorPhase = Literal["validation", "architect", "builder", "upload", "unknown"]


class Photo(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    url: HttpUrl
    alt: str | None = Field(default=None, max_length=200)
    caption: str | None = Field(default=None, max_length=300)


class BusinessInput(BaseModel):
    """Validated business profile that drives one pipeline run."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, populate_by_name=True)

    business_name: str = Field(min_length=2, max_length=100)
    address: str = Field(min_length=5, max_length=200)
    city: str = Field(min_length=2, max_length=50)
    state: str = Field(min_length=2, max_length=50)
    business_category: str = Field(
        min_length=2,
        max_length=50,
        validation_alias=AliasChoices("business_category", "category"),
    )
    description: str = Field(min_length=20, max_length=2000)
    owner_name: str | None = Field(default=None, min_length=2, max_length=100)
    phone: Annotated[str, StringConstraints(pattern=PHONE_PATTERN)] | None = None
    email: EmailStr | None = None
    website: HttpUrl | None = None
    hours: dict[str, str] | None = None
    photos: list[Photo] = Field(default_factory=list)

    @property
    def location(self) -> str:
        return f"{self.address}, {self.city}, {self.state}"


class FieldError(BaseModel):
    field: str
    message: str


class SiteStyleGuidelines(BaseModel):
    primary_color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
    secondary_color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
    accent_color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
    font_heading: str | None = None
    font_body: str | None = None
    tone: Literal["professional", "friendly", "luxury", "minimal", "playful"] | None = None
    layout: Literal["single-page", "multi-section", "split-hero"] | None = None


class PageSection(BaseModel):
    section_id: str = Field(description="Anchor id of the section, e.g. 'hero'")
    section_name: str = Field(description="Human readable section title")
    copy_hints: str | None = Field(default=None, description="Guidance for the section copy")
    required: bool = True


class SiteSpecification(BaseModel):
    """Artifact produced by the Architect Agent and consumed by the Builder Agent."""
    website_generation_prompt: str = Field(
        description="Detailed natural-language instructions for building the website"
    )
    business_name: str | None = None
    site_style_guidelines: SiteStyleGuidelines | None = None
    page_sections: list[PageSection] | None = None


class UploadResult(BaseModel):
    storage_path: str
    public_url: str
    size_bytes: int


class PipelineResult(BaseModel):
    """Terminal record of a pipeline run: either a success or an error tagged with its phase."""
    status: Literal["success", "error"]
    run_id: str
    business_slug: str | None = None
    storage_path: str | None = None
    public_url: str | None = None
    html_size_bytes: int | None = None
    generated_at: str | None = None
    error_phase: ErrorPhase | None = None
    error_message: str | None = None
    validation_errors: list[FieldError] | None = None

    def to_response(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)
