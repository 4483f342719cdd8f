from __future__ import annotations

from datetime import date

from pagebuilder.services.schema_registry import (
    BusinessFacts,
    build_breadcrumb_schema,
    build_faq_schema,
    build_json_ld,
    build_page_schemas,
    build_review_schemas,
    build_schema_from_context,
    calculate_match_score,
    get_recommended_schema,
    parse_opening_hours,
    properties_with_inheritance,
)


def test_calculate_match_score_tiers():
    assert calculate_match_score("restaurant", ("restaurant",)) == 100
    assert calculate_match_score("italian restaurant", ("restaurant",)) == 50
    assert calculate_match_score("grill", ("bar and grill",)) == 40
    assert calculate_match_score("yoga studio downtown", ("pilates studio",)) == 20
    assert calculate_match_score("ab", ("abc",)) == 40
    assert calculate_match_score("zzqx", ("restaurant",)) == 0


def test_get_recommended_schema_picks_specific_type():
    assert get_recommended_schema("restaurant") == "Restaurant"
    assert get_recommended_schema("saas") == "SoftwareApplication"


def test_get_recommended_schema_falls_back_to_local_business():
    assert get_recommended_schema("zzqx") == "LocalBusiness"
    assert get_recommended_schema("") == "LocalBusiness"


def test_properties_with_inheritance_includes_parent_properties():
    restaurant = properties_with_inheritance("Restaurant")
    assert restaurant is not None
    assert "servesCuisine" in restaurant or "menu" in restaurant
    assert "telephone" in restaurant
    assert properties_with_inheritance("NotAType") is None


def test_build_json_ld_drops_unknown_and_empty_properties():
    schema = build_json_ld(
        "LocalBusiness",
        {"name": "Casa", "description": "", "favouriteColor": "green"},
        "https://casa.example",
    )

    assert schema == {
        "@context": "https://schema.org",
        "@type": "LocalBusiness",
        "url": "https://casa.example",
        "name": "Casa",
    }


def test_parse_opening_hours_ranges_and_default():
    specs = parse_opening_hours("Mon-Fri 9am-6pm, Sat-Sun 10:30am-4pm")

    assert specs[0]["dayOfWeek"] == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
    assert (specs[0]["opens"], specs[0]["closes"]) == ("09:00", "18:00")
    assert specs[1]["dayOfWeek"] == ["Saturday", "Sunday"]
    assert (specs[1]["opens"], specs[1]["closes"]) == ("10:30", "16:00")

    default = parse_opening_hours("by appointment")
    assert default[0]["opens"] == "09:00"
    assert default[0]["closes"] == "17:00"
    assert len(default[0]["dayOfWeek"]) == 5


def test_build_schema_from_context_parses_address():
    facts = BusinessFacts(
        business_name="Casa Verde",
        business_type="restaurant",
        description="Wood-fired Mexican food",
        phone="555-0100",
        address="12 Elm St, Austin, TX 78701",
        hours="Tue-Sun 5pm-10pm",
    )

    schema = build_schema_from_context("Restaurant", facts, "https://casa.example/index.html")

    assert schema["@type"] == "Restaurant"
    assert schema["telephone"] == "555-0100"
    assert schema["address"] == {
        "@type": "PostalAddress",
        "streetAddress": "12 Elm St",
        "addressLocality": "Austin",
        "addressRegion": "TX",
        "postalCode": "78701",
        "addressCountry": "US",
    }
    assert schema["openingHoursSpecification"][0]["opens"] == "17:00"


def test_breadcrumb_for_homepage_has_single_item():
    home = build_breadcrumb_schema("Homepage", "https://casa.example/index.html", "https://casa.example")
    about = build_breadcrumb_schema("About", "https://casa.example/about.html", "https://casa.example")

    assert len(home["itemListElement"]) == 1
    assert about["itemListElement"][1] == {
        "@type": "ListItem",
        "position": 2,
        "name": "About",
        "item": "https://casa.example/about.html",
    }


def test_review_schemas_use_recommended_type():
    facts = BusinessFacts(
        business_name="Casa Verde",
        business_type="restaurant",
        testimonials=[{"quote": "Best tacos in town"}],
    )

    reviews = build_review_schemas(facts, today=date(2026, 1, 2))

    assert reviews[0]["itemReviewed"] == {"@type": "Restaurant", "name": "Casa Verde"}
    assert reviews[0]["author"]["name"] == "Customer 1"
    assert reviews[0]["datePublished"] == "2026-01-02"


def test_faq_schema_absent_without_questions():
    assert build_faq_schema([]) is None
    faq = build_faq_schema([{"question": "Open late?", "answer": "Until 10pm."}])
    assert faq is not None
    assert faq["mainEntity"][0]["acceptedAnswer"]["text"] == "Until 10pm."


def test_page_schemas_add_menu_only_on_menu_page():
    facts = BusinessFacts(
        business_name="Casa Verde",
        business_type="restaurant",
        services=["Tacos", "Burritos"],
        site_url="https://casa.example",
    )

    menu_page = build_page_schemas(facts, "Menu", "https://casa.example/menu.html", "menu")
    home_page = build_page_schemas(facts, "Homepage", "https://casa.example/index.html", "index")

    assert menu_page.schema_type == "Restaurant"
    assert [s["@type"] for s in menu_page.all] == ["Restaurant", "BreadcrumbList", "Menu"]
    assert [s["@type"] for s in home_page.all] == ["Restaurant", "BreadcrumbList"]


def test_page_schemas_add_software_and_faq_on_index():
    facts = BusinessFacts(
        business_name="Ledgerly",
        business_type="saas",
        faqs=[{"question": "Free trial?", "answer": "14 days."}],
    )

    schemas = build_page_schemas(facts, "Homepage", "/index.html", "index")

    assert [s["@type"] for s in schemas.all] == [
        "SoftwareApplication",
        "BreadcrumbList",
        "SoftwareApplication",
        "FAQPage",
    ]
