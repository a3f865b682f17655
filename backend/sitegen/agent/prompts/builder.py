from string import Template

BUILDER_SYSTEM_PROMPT = """
You are the **Builder Agent**, an expert web developer who specializes in RESKINNING templates.
You receive a MASTER TEMPLATE (mobile-responsive HTML/CSS) and a SPECIFICATION describing a business.
You return the complete rewritten HTML document and nothing else.
"""

BUILDER_PROMPT_TEMPLATE = """
Rewrite the MASTER TEMPLATE so it suits the business described in the SPECIFICATION.

CRITICAL RULES:
1. **PRESERVE STRUCTURE**
   - Do NOT change the HTML structure, class names or layout logic.
   - Do NOT add Tailwind, Bootstrap or any other CSS framework.
   - Use the existing CSS variables in the <style> tag.
2. **RESKIN THEME**
   - Update the :root CSS variables (colors, fonts) to match the specification.
3. **UPDATE CONTENT**
   - Replace the placeholder business name everywhere, including <title> and the meta description.
   - Rewrite the hero headline and lede, the services cards, the about text and the footer.
4. **UPDATE IMAGES**
   - Replace every <img> src with a relevant Unsplash URL of the form
     https://images.unsplash.com/photo-[ID]?auto=format&fit=crop&w=1200
5. **OUTPUT**
   - Return ONLY the complete HTML document starting with <!DOCTYPE html>. Do not wrap it in markdown.

INPUT SPECIFICATION:
{specification}

MASTER TEMPLATE:
{template}
"""

# $-placeholders keep the CSS braces literal.
MASTER_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>$business_name</title>
    <meta name="description" content="$meta_description" />
    <style>
        :root {
            --bg: #fffaf5;
            --bg-elev: #ffffff;
            --text: #241a16;
            --muted: #6b5c55;
            --primary: $primary_color;
            --secondary: $secondary_color;
            --accent: $accent_color;
            --border: #f2e7de;
            --radius: 16px;
            --max: 1160px;
            --font-heading: "$font_heading", Georgia, serif;
            --font-body: "$font_body", system-ui, sans-serif;
        }
        * { box-sizing: border-box; }
        html { scroll-behavior: smooth; }
        body { margin: 0; font-family: var(--font-body); background: var(--bg); color: var(--text); line-height: 1.6; }
        h1, h2, h3 { font-family: var(--font-heading); line-height: 1.15; }
        img { max-width: 100%; display: block; }
        a { color: inherit; text-decoration: none; }
        .container { max-width: var(--max); margin: 0 auto; padding: 0 24px; }
        .section { padding: 72px 0; }
        .section.alt { background: var(--bg-elev); }
        .grid { display: grid; gap: 24px; grid-template-columns: repeat(3, minmax(0, 1fr)); }
        @media (max-width: 900px) { .grid { grid-template-columns: 1fr; } }
        .card { background: var(--bg-elev); border: 1px solid var(--border); border-radius: var(--radius); padding: 24px; transition: transform .2s ease; }
        .card:hover { transform: translateY(-4px); }
        .btn { display: inline-flex; padding: 12px 18px; border-radius: 12px; font-weight: 700; background: var(--primary); color: #fff; }
        .btn.ghost { background: transparent; color: var(--primary); border: 1px solid var(--primary); }
        header { position: sticky; top: 0; z-index: 10; background: var(--bg); border-bottom: 1px solid var(--border); }
        .header-inner { display: flex; align-items: center; justify-content: space-between; padding: 14px 0; }
        .brand { font-family: var(--font-heading); font-weight: 800; font-size: 1.25rem; }
        nav ul { list-style: none; display: flex; gap: 16px; margin: 0; padding: 0; }
        .hero { padding: 96px 0 72px; background: linear-gradient(135deg, var(--secondary), var(--bg)); }
        .hero-wrap { display: grid; gap: 32px; grid-template-columns: 1.1fr 0.9fr; align-items: center; }
        @media (max-width: 900px) { .hero-wrap { grid-template-columns: 1fr; } nav { display: none; } }
        .hero img { border-radius: var(--radius); aspect-ratio: 4 / 3; object-fit: cover; }
        .accent { color: var(--accent); }
        [data-reveal] { opacity: 0; transform: translateY(10px); transition: opacity .5s ease, transform .5s ease; }
        [data-reveal].reveal-in { opacity: 1; transform: none; }
        footer { padding: 48px 0; border-top: 1px solid var(--border); color: var(--muted); }
    </style>
</head>
<body>
    <header>
        <div class="container header-inner">
            <a class="brand" href="#hero">$business_name</a>
            <nav aria-label="Primary">
                <ul>
$nav_items
                </ul>
            </nav>
            <a class="btn" href="#contact">Get in touch</a>
        </div>
    </header>
    <main id="main">
        <section id="hero" class="hero">
            <div class="container hero-wrap">
                <div data-reveal>
                    <h1>$business_name</h1>
                    <p class="lede">$tagline</p>
                    <a class="btn" href="#contact">Visit us</a>
                    <a class="btn ghost" href="#services">Our services</a>
                </div>
                <img src="https://images.unsplash.com/photo-1557804506-669a67965ba0?auto=format&fit=crop&w=1200" alt="$business_name" loading="lazy" />
            </div>
        </section>
        <section id="services" class="section alt">
            <div class="container">
                <h2>What we offer</h2>
                <div class="grid">
                    <div class="card" data-reveal><h3>Signature service</h3><p>Describe the flagship service here.</p></div>
                    <div class="card" data-reveal><h3>Popular choice</h3><p>Describe a popular service here.</p></div>
                    <div class="card" data-reveal><h3>Something special</h3><p>Describe a distinctive offer here.</p></div>
                </div>
            </div>
        </section>
        <section id="about" class="section">
            <div class="container" data-reveal>
                <h2>About <span class="accent">$business_name</span></h2>
                <p>Tell the story of the business, its owner and what makes it trustworthy.</p>
            </div>
        </section>
        <section id="contact" class="section alt">
            <div class="container" data-reveal>
                <h2>Contact</h2>
                <p>$location</p>
            </div>
        </section>
    </main>
    <footer>
        <div class="container">&copy; <span id="year"></span> $business_name. All rights reserved.</div>
    </footer>
    <script>
        const revealEls = document.querySelectorAll('[data-reveal]');
        if ('IntersectionObserver' in window) {
            const io = new IntersectionObserver((entries) => {
                entries.forEach((entry) => { if (entry.isIntersecting) { entry.target.classList.add('reveal-in'); io.unobserve(entry.target); } });
            }, { threshold: 0.12 });
            revealEls.forEach((el) => io.observe(el));
        } else {
            revealEls.forEach((el) => el.classList.add('reveal-in'));
        }
        document.getElementById('year').textContent = new Date().getFullYear();
    </script>
</body>
</html>
""")

# Placeholder business the live builder is asked to replace.
TEMPLATE_PLACEHOLDERS = {
    "business_name": "Verve West",
    "meta_description": "Verve West is a modern retail portfolio template.",
    "tagline": "Hero headline goes here. Explain what the business does.",
    "location": "123 Example Street, City, State",
    "primary_color": "#d3543c",
    "secondary_color": "#fff2ea",
    "accent_color": "#b94632",
    "font_heading": "Playfair Display",
    "font_body": "Inter",
}

DEFAULT_NAV_SECTIONS = [("services", "Services"), ("about", "About"), ("contact", "Contact")]
