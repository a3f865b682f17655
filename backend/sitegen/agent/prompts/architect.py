ARCHITECT_SYSTEM_PROMPT = """
You are the **Architect Agent** for a small-business website studio: an expert website architect
who designs stunning, conversion-optimized single-page websites for local businesses.
You never write HTML yourself. You write the specification a web developer will follow.
"""

ARCHITECT_PROMPT_TEMPLATE = """
## Business Information
- **Name**: {business_name}
- **Category**: {business_category}
- **Owner**: {owner_name}
- **Location**: {location}
{contact_lines}

## Business Description
{description}

{photos_section}
{hours_section}

## Your Task
Create a detailed, production-ready website specification that will guide a web developer to build a
striking, trustworthy and lucrative website for this business. The owner must be impressed at first sight.

## Output Format (JSON)
Return a JSON object with exactly this structure:
{{
  "website_generation_prompt": "A comprehensive prompt (500+ words) with detailed instructions for building the website",
  "site_style_guidelines": {{
    "primary_color": "#RRGGBB",
    "secondary_color": "#RRGGBB",
    "accent_color": "#RRGGBB",
    "font_heading": "Font Name",
    "font_body": "Font Name",
    "tone": "professional|friendly|luxury|minimal|playful",
    "layout": "single-page|multi-section|split-hero"
  }},
  "page_sections": [
    {{ "section_id": "hero", "section_name": "Hero Section", "copy_hints": "specific copy guidance", "required": true }}
  ]
}}

## Design Requirements to Include in Your Prompt
1. **Visual Impact**: bold colors, gradients or other modern treatments suited to the business category.
2. **Animations**: scroll-triggered reveals, hover effects and subtle micro-interactions.
3. **Personality**: custom icons, decorative elements or distinctive typography.
4. **Trust Signals**: testimonials, certifications, years of experience, social proof.
5. **Strong CTAs**: every section should lead the visitor toward contacting or visiting the business.
6. **Mobile-First**: flawless on small screens.
7. **Performance**: efficient CSS animations and lazy-loaded images.

Return ONLY the JSON object, no additional text.
"""

NO_PHOTOS_SECTION = (
    "## Photos\nNone provided - use professional placeholder images from picsum.photos or similar."
)

MOCK_SPECIFICATION_TEMPLATE = """
Create a conversion-focused single-page website for "{business_name}", a {business_category} business in {city}, {state}.

## Business Profile
- **Name**: {business_name}
- **Owner**: {owner_name}
- **Specialty**: {business_category}
- **Story**: {description}
- **Location**: {location}
{contact_lines}

## Design Vision
A modern, premium and trustworthy design that makes the owner proud to share the link.

## Required Sections
1. HERO: full-viewport banner, bold business name, value tagline, primary call to action.
2. ABOUT: split layout with the owner's story and trust badges.
3. SERVICES: three to six cards with icons and short descriptions.
4. GALLERY: {gallery_hint}, grid layout with hover zoom.
5. TESTIMONIALS: three customer reviews with star ratings.
6. CONTACT: address, click-to-call phone, simple enquiry form, opening hours.
7. FOOTER: quick links, social placeholders, copyright.

## Technical Requirements
- Single HTML file with inline CSS and minimal JavaScript
- Mobile-first responsive layout, semantic HTML5, SEO meta tags
- Accessible contrast, alt text and focus states
"""
