from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TemplateDefinition:
    key: str
    name: str
    schema_type: str
    description: str
    sections: tuple[str, ...]
    seo_title_format: str
    guidelines: tuple[str, ...]


@dataclass(frozen=True)
class IndustryDefaults:
    tagline: str
    tone: str
    target_audience: str
    services: tuple[str, ...]
    unique_selling_points: tuple[str, ...]
    hours: str
    price_range: str
    primary_color: str


@dataclass(frozen=True)
class IndustryProfile:
    key: str
    label: str
    recommended_pages: tuple[str, ...]
    defaults: IndustryDefaults
    # Prebuilt site under the industry template host, served as "{template_site}/{slug}.html".
    template_site: Optional[str] = None
    template_pages: tuple[str, ...] = ()
    template_default_name: str = ""

    def has_template_page(self, slug: str) -> bool:
        return bool(self.template_site) and slug in self.template_pages


_TEMPLATES: dict[str, TemplateDefinition] = {
    template.key: template
    for template in (
        TemplateDefinition(
            key="Homepage",
            name="Homepage",
            schema_type="WebPage",
            description="Main landing page with hero, features, social proof, and CTA",
            sections=("Navbar", "Hero", "Features", "Stats", "Testimonials", "CTA", "Footer"),
            seo_title_format="{Brand} - {Tagline}",
            guidelines=(
                "Hero should communicate primary value prop in <5 seconds",
                "Include social proof within first scroll",
                "CTA should appear multiple times",
            ),
        ),
        TemplateDefinition(
            key="LandingPage",
            name="Landing Page",
            schema_type="WebPage",
            description="Focused landing page for campaigns with single CTA",
            sections=("Navbar", "Hero", "Benefits", "SocialProof", "Testimonials", "FAQ", "CTA", "Footer"),
            seo_title_format="{Offer} - {Benefit} | {Brand}",
            guidelines=(
                "Single focused call-to-action",
                "Remove navigation distractions",
                "Lead with benefits not features",
            ),
        ),
        TemplateDefinition(
            key="About",
            name="About",
            schema_type="AboutPage",
            description="Company or personal about page with story, team, and values",
            sections=("Navbar", "Hero", "Content", "Team", "Stats", "CTA", "Footer"),
            seo_title_format="About {Brand} - {Differentiator}",
            guidelines=(
                "Lead with unique story",
                "Include founder or team photos",
                "Use specific milestones",
            ),
        ),
        TemplateDefinition(
            key="Services",
            name="Services",
            schema_type="Service",
            description="Services overview with offerings, process, and pricing",
            sections=("Navbar", "Hero", "Features", "Process", "Pricing", "Testimonials", "FAQ", "CTA", "Footer"),
            seo_title_format="{Service Type} Services | {Brand}",
            guidelines=(
                "Each service should have clear deliverables",
                "Include process visualization",
                "Price transparency builds trust",
            ),
        ),
        TemplateDefinition(
            key="Contact",
            name="Contact",
            schema_type="ContactPage",
            description="Contact page with form, location, and alternative methods",
            sections=("Navbar", "Hero", "ContactForm", "ContactInfo", "Footer"),
            seo_title_format="Contact {Brand}",
            guidelines=(
                "Form should be simple with minimal fields",
                "Set response time expectations",
                "Include multiple contact methods",
            ),
        ),
        TemplateDefinition(
            key="BlogIndex",
            name="Blog Index",
            schema_type="Blog",
            description="Blog listing page with featured posts and categories",
            sections=("Navbar", "Hero", "FeaturedPost", "BlogGrid", "Pagination", "Newsletter", "Footer"),
            seo_title_format="{Brand} Blog - {Topic Focus}",
            guidelines=(
                "Feature recent or popular posts prominently",
                "Include category filtering",
                "Show post metadata",
            ),
        ),
        TemplateDefinition(
            key="BlogPost",
            name="Blog Post",
            schema_type="BlogPosting",
            description="Individual blog post with article, author, and related content",
            sections=("Navbar", "ArticleHeader", "ArticleBody", "AuthorBio", "RelatedPosts", "Footer"),
            seo_title_format="{Post Title} | {Brand} Blog",
            guidelines=(
                "Use proper heading hierarchy",
                "Include featured image",
                "Show estimated read time",
            ),
        ),
        TemplateDefinition(
            key="Product",
            name="Product Page",
            schema_type="Product",
            description="Single product page with gallery, details, reviews, and purchase",
            sections=(
                "Navbar",
                "Breadcrumbs",
                "ProductGallery",
                "ProductInfo",
                "AddToCart",
                "ProductDescription",
                "Reviews",
                "RelatedProducts",
                "Footer",
            ),
            seo_title_format="{Product Name} - {Category} | {Brand}",
            guidelines=(
                "High-quality images from multiple angles",
                "Clear pricing and availability",
                "Prominent add-to-cart button",
            ),
        ),
        TemplateDefinition(
            key="Pricing",
            name="Pricing",
            schema_type="ItemList",
            description="Pricing page with tiers, comparison, and FAQ",
            sections=("Navbar", "Hero", "PricingCards", "Comparison", "FAQ", "CTA", "Footer"),
            seo_title_format="{Brand} Pricing - Plans Starting at {Low Price}",
            guidelines=(
                "Highlight recommended plan",
                "Show clear feature differentiation",
                "Address pricing objections in FAQ",
            ),
        ),
        TemplateDefinition(
            key="FAQ",
            name="FAQ",
            schema_type="FAQPage",
            description="FAQ page with categories and search",
            sections=("Navbar", "Hero", "FAQAccordion", "ContactCTA", "Footer"),
            seo_title_format="FAQ - {Brand} Help Center",
            guidelines=(
                "Use FAQPage schema for rich snippets",
                "Group questions by category",
                "Start answers with direct response",
            ),
        ),
        TemplateDefinition(
            key="Privacy",
            name="Privacy Policy",
            schema_type="WebPage",
            description="Privacy policy page",
            sections=("Navbar", "LegalHeader", "PrivacyContent", "Footer"),
            seo_title_format="Privacy Policy | {Brand}",
            guidelines=(
                "Include last updated date",
                "Use clear headings",
                "Explain data practices in plain language",
            ),
        ),
        TemplateDefinition(
            key="Terms",
            name="Terms of Service",
            schema_type="WebPage",
            description="Terms of service page",
            sections=("Navbar", "LegalHeader", "TermsContent", "Footer"),
            seo_title_format="Terms of Service | {Brand}",
            guidelines=(
                "Include effective date",
                "Number sections for reference",
                "Highlight important terms",
            ),
        ),
    )
}

PAGE_SLUGS: dict[str, str] = {
    "Homepage": "index",
    "About": "about",
    "Services": "services",
    "Contact": "contact",
    "FAQ": "faq",
    "Pricing": "pricing",
    "BlogIndex": "blog",
    "BlogPost": "blog-post",
    "Product": "product",
    "LandingPage": "landing",
    "Privacy": "privacy",
    "Terms": "terms",
}

# Slot name -> component type in the content service. Slots missing here are always generated.
SECTION_TYPES: dict[str, str] = {
    "Hero": "Hero",
    "Features": "Features",
    "CTA": "CTA",
    "ContactCTA": "CTA",
    "Footer": "Footer",
    "FAQ": "FAQ",
    "FAQAccordion": "FAQ",
    "Testimonials": "Testimonial",
    "SocialProof": "Testimonial",
    "Pricing": "Pricing",
    "PricingCards": "Pricing",
    "ContactForm": "Form",
    "ContactInfo": "Form",
}


def list_templates() -> list[TemplateDefinition]:
    return list(_TEMPLATES.values())


def get_template(key: str) -> Optional[TemplateDefinition]:
    return _TEMPLATES.get(key)


def resolve_template(key: str) -> TemplateDefinition:
    """Return the named template, or a generic five-slot page for unknown keys."""
    template = _TEMPLATES.get(key)
    if template is not None:
        return template
    return TemplateDefinition(
        key=key,
        name=key,
        schema_type="WebPage",
        description=f"A {key} page for the business",
        sections=("Navbar", "Hero", "Content", "CTA", "Footer"),
        seo_title_format=f"{key} | {{Brand}}",
        guidelines=(
            "Clear heading hierarchy",
            "Include relevant content sections",
            "End with a call to action",
        ),
    )


def section_type_for_slot(slot: str) -> Optional[str]:
    return SECTION_TYPES.get(slot)


def page_slug(page_name: str) -> str:
    slug = PAGE_SLUGS.get(page_name)
    if slug:
        return slug
    return re.sub(r"[^a-z0-9-]", "-", page_name.lower())


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug[:60]


def _industry(
    key: str,
    label: str,
    recommended: tuple[str, ...],
    *,
    tagline: str,
    tone: str,
    audience: str,
    services: tuple[str, ...],
    usps: tuple[str, ...],
    hours: str,
    price_range: str,
    color: str,
    template_site: Optional[str] = None,
    template_pages: tuple[str, ...] = (),
    template_default_name: str = "",
) -> IndustryProfile:
    return IndustryProfile(
        key=key,
        label=label,
        recommended_pages=recommended,
        template_site=template_site,
        template_pages=template_pages,
        template_default_name=template_default_name,
        defaults=IndustryDefaults(
            tagline=tagline,
            tone=tone,
            target_audience=audience,
            services=services,
            unique_selling_points=usps,
            hours=hours,
            price_range=price_range,
            primary_color=color,
        ),
    )


_INDUSTRIES: dict[str, IndustryProfile] = {
    profile.key: profile
    for profile in (
        _industry(
            "restaurant",
            "Restaurant",
            ("Homepage", "About", "Services", "Contact", "FAQ"),
            tagline="Where great food meets great company.",
            tone="friendly",
            audience="Food lovers and families",
            services=("Dine-In", "Takeout", "Catering", "Private Events", "Delivery"),
            usps=("Fresh local ingredients", "Award-winning chef", "Cozy atmosphere"),
            hours="Tue-Sun 11am-10pm",
            price_range="$$",
            color="#b45309",
            template_site="restaurant",
            template_pages=("index", "about", "contact", "faq", "menu", "reservations", "services"),
            template_default_name="The Golden Fork",
        ),
        _industry(
            "gym",
            "Gym / Fitness",
            ("Homepage", "About", "Services", "Pricing", "Contact"),
            tagline="Transform your body, transform your life.",
            tone="friendly",
            audience="Fitness enthusiasts of all levels",
            services=("Weight Training", "Cardio", "Group Classes", "Personal Training", "Nutrition Coaching"),
            usps=("24/7 access", "State-of-the-art equipment", "Expert trainers"),
            hours="Open 24/7",
            price_range="$$",
            color="#ef4444",
        ),
        _industry(
            "yoga",
            "Yoga Studio",
            ("Homepage", "About", "Services", "Pricing", "Contact"),
            tagline="Find your balance.",
            tone="friendly",
            audience="Health-conscious adults looking for stress relief and fitness",
            services=("Vinyasa Flow", "Hatha Yoga", "Yin Yoga", "Hot Yoga", "Meditation", "Private Sessions"),
            usps=("First class free", "Small class sizes", "Certified instructors"),
            hours="Mon-Fri 6am-9pm, Sat-Sun 8am-6pm",
            price_range="$$",
            color="#7c3aed",
            template_site="yoga",
            template_pages=("index", "about", "contact", "services"),
            template_default_name="Serenity Yoga Studio",
        ),
        _industry(
            "lawfirm",
            "Law Firm",
            ("Homepage", "About", "Services", "Contact", "FAQ"),
            tagline="Experienced advocates for your legal needs.",
            tone="professional",
            audience="Business owners and professionals",
            services=("Business Litigation", "Real Estate Law", "Estate Planning", "Contract Review"),
            usps=("Free consultation", "Decades of experience", "Personalized attention"),
            hours="Mon-Fri 9am-6pm",
            price_range="$$$",
            color="#1e3a5f",
            template_site="lawfirm",
            template_pages=("index", "about", "contact", "services"),
            template_default_name="Sterling & Associates",
        ),
        _industry(
            "accountant",
            "Accountant",
            ("Homepage", "About", "Services", "Contact", "FAQ"),
            tagline="Your financial success is our mission.",
            tone="professional",
            audience="Small businesses and individuals needing tax and accounting services",
            services=("Tax Preparation", "Bookkeeping", "Financial Planning", "Business Advisory", "Audit Support"),
            usps=("CPA certified", "Year-round support", "IRS representation"),
            hours="Mon-Fri 9am-6pm",
            price_range="$$",
            color="#16a34a",
        ),
        _industry(
            "realestate",
            "Real Estate",
            ("Homepage", "About", "Services", "Contact"),
            tagline="Finding your perfect place.",
            tone="professional",
            audience="Home buyers, sellers, and investors",
            services=("Buyer Representation", "Seller Representation", "Property Valuation", "Investment Properties"),
            usps=("Local market expertise", "Personalized service", "Top-rated agent"),
            hours="Mon-Sat 9am-7pm, Sun 12pm-5pm",
            price_range="$$$",
            color="#dc2626",
        ),
        _industry(
            "salon",
            "Salon / Spa",
            ("Homepage", "About", "Services", "Pricing", "Contact"),
            tagline="Where style meets confidence.",
            tone="friendly",
            audience="Style-conscious individuals of all ages",
            services=("Haircuts", "Color", "Styling", "Treatments", "Bridal"),
            usps=("Award-winning stylists", "Premium products", "Relaxing atmosphere"),
            hours="Tue-Sat 9am-7pm",
            price_range="$$",
            color="#db2777",
        ),
        _industry(
            "dentist",
            "Dentist",
            ("Homepage", "About", "Services", "Contact", "FAQ"),
            tagline="Your smile is our priority.",
            tone="friendly",
            audience="Families and individuals seeking quality dental care",
            services=("General Dentistry", "Cosmetic Dentistry", "Orthodontics", "Emergency Care"),
            usps=("Same-day appointments", "Modern technology", "Insurance accepted"),
            hours="Mon-Fri 8am-6pm, Sat 9am-2pm",
            price_range="$$",
            color="#0ea5e9",
        ),
        _industry(
            "saas",
            "SaaS / Tech",
            ("Homepage", "About", "Pricing", "Contact", "FAQ", "BlogIndex"),
            tagline="Software that works as hard as you do.",
            tone="professional",
            audience="Businesses and teams seeking productivity tools",
            services=("Cloud Platform", "API Access", "Analytics Dashboard", "Team Collaboration", "Integrations"),
            usps=("14-day free trial", "99.9% uptime", "SOC 2 compliant"),
            hours="Support: Mon-Fri 9am-6pm",
            price_range="$$",
            color="#6366f1",
        ),
        _industry(
            "agency",
            "Agency",
            ("Homepage", "About", "Services", "Pricing", "Contact"),
            tagline="Creative solutions that drive results.",
            tone="professional",
            audience="Businesses seeking marketing and design services",
            services=("Brand Strategy", "Web Design", "Digital Marketing", "Content Creation", "SEO"),
            usps=("Data-driven approach", "Award-winning team", "Transparent pricing"),
            hours="Mon-Fri 9am-6pm",
            price_range="$$$",
            color="#8b5cf6",
        ),
        _industry(
            "ecommerce",
            "E-commerce",
            ("Homepage", "Product", "Pricing", "Contact", "FAQ"),
            tagline="Quality products, delivered to your door.",
            tone="friendly",
            audience="Online shoppers seeking quality and convenience",
            services=("Online Store", "Free Shipping", "Easy Returns", "Gift Wrapping", "Wholesale"),
            usps=("Free shipping over $50", "30-day returns", "Secure checkout"),
            hours="Online 24/7, Support: Mon-Fri 9am-6pm",
            price_range="$$",
            color="#059669",
        ),
        _industry(
            "coffeeshop",
            "Coffee Shop",
            ("Homepage", "About", "Contact"),
            tagline="Where every cup tells a story.",
            tone="friendly",
            audience="Coffee lovers, remote workers, and students",
            services=("Espresso Drinks", "Pour Over", "Pastries", "Light Breakfast", "Catering"),
            usps=("Locally roasted beans", "Free WiFi", "Cozy atmosphere"),
            hours="Mon-Fri 6am-7pm, Sat-Sun 7am-6pm",
            price_range="$",
            color="#78350f",
        ),
        _industry(
            "photography",
            "Photography",
            ("Homepage", "About", "Services", "Contact"),
            tagline="Capturing moments that matter.",
            tone="friendly",
            audience="Couples, families, and businesses seeking professional photography",
            services=("Portraits", "Weddings", "Events", "Product Photography", "Headshots"),
            usps=("10+ years experience", "Fast turnaround", "Online gallery delivery"),
            hours="By appointment",
            price_range="$$",
            color="#374151",
        ),
        _industry(
            "construction",
            "Construction",
            ("Homepage", "About", "Services", "Contact"),
            tagline="Building your vision, one project at a time.",
            tone="professional",
            audience="Homeowners and businesses planning renovations or new builds",
            services=("New Construction", "Renovations", "Commercial Build-Out", "Project Management", "Design-Build"),
            usps=("Licensed & bonded", "25+ years experience", "On-time guarantee"),
            hours="Mon-Fri 7am-5pm",
            price_range="$$$",
            color="#d97706",
        ),
        _industry(
            "plumber",
            "Plumber",
            ("Homepage", "About", "Services", "Contact", "FAQ"),
            tagline="Fast, reliable plumbing solutions.",
            tone="professional",
            audience="Homeowners and property managers",
            services=("Emergency Repairs", "Drain Cleaning", "Water Heater Service", "Pipe Installation", "Inspections"),
            usps=("24/7 emergency service", "Licensed & insured", "Upfront pricing"),
            hours="Mon-Sat 7am-7pm, Emergency 24/7",
            price_range="$$",
            color="#2563eb",
        ),
        _industry(
            "insurance",
            "Insurance",
            ("Homepage", "About", "Services", "Contact", "FAQ"),
            tagline="Protection you can count on.",
            tone="professional",
            audience="Families and businesses seeking comprehensive coverage",
            services=("Auto Insurance", "Home Insurance", "Life Insurance", "Business Insurance", "Health Insurance"),
            usps=("Multiple carrier options", "Free quotes", "Claims assistance"),
            hours="Mon-Fri 9am-6pm",
            price_range="$$",
            color="#0369a1",
        ),
    )
}


def list_industries() -> list[IndustryProfile]:
    return list(_INDUSTRIES.values())


def get_industry(key: str) -> Optional[IndustryProfile]:
    return _INDUSTRIES.get(key)


def build_brand_context(
    *,
    business_name: Optional[str] = None,
    industry: Optional[IndustryProfile] = None,
    extra: Optional[str] = None,
) -> str:
    """Render the brand block fed to every prompt.

    Industry defaults come first; caller text is appended unchanged so it always has the last word.
    """
    lines: list[str] = []
    if business_name:
        lines.append(f"Business Name: {business_name}")
    if industry is not None:
        d = industry.defaults
        lines.extend(
            [
                f"Industry: {industry.label}",
                f"Tagline: {d.tagline}",
                f"Tone: {d.tone}",
                f"Target Audience: {d.target_audience}",
                f"Services: {', '.join(d.services)}",
                f"Unique Selling Points: {', '.join(d.unique_selling_points)}",
                f"Hours: {d.hours}",
                f"Price Range: {d.price_range}",
                f"Primary Color: {d.primary_color}",
            ]
        )
    text = (extra or "").strip()
    if text:
        lines.append(f"Additional Context: {text}" if lines else text)
    return "\n".join(lines)
