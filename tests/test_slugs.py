from portal.slugs import (
    generate_vendor_slug,
    needs_slug_repair,
    normalize_page_slug,
    repair_vendor_slug,
    slugify,
    split_vendor_slug,
    url_to_vendor_slug,
    vendor_slug_to_url,
)


def test_slugify():
    assert slugify("Joe's Plumbing & Heating") == "joes-plumbing-and-heating"
    assert slugify("  A  --  B  ") == "a-b"
    assert slugify("") == ""


def test_generate_vendor_slug():
    assert generate_vendor_slug("ABC Roofing", "Home Services") == "vendors-home-services-abc-roofing"
    assert generate_vendor_slug("", "home-services") == ""


def test_split_honours_compound_categories():
    assert split_vendor_slug("vendors-home-services-abc-roofing") == ("home-services", "abc-roofing")
    assert split_vendor_slug("vendors-landscaping-green-thumb") == ("landscaping", "green-thumb")
    assert split_vendor_slug("amenities-golf") is None


def test_longest_category_wins():
    slug = "vendors-real-estate-and-senior-living-sunny-acres"
    assert split_vendor_slug(slug) == ("real-estate-and-senior-living", "sunny-acres")


def test_categories_from_table_are_used():
    slug = "vendors-pool-and-spa-blue-water"
    assert split_vendor_slug(slug) == ("pool", "and-spa-blue-water")
    assert split_vendor_slug(slug, ["pool-and-spa"]) == ("pool-and-spa", "blue-water")


def test_url_round_trip():
    slug = "vendors-home-services-abc-roofing"
    assert vendor_slug_to_url(slug) == "/vendors/home-services/abc-roofing"
    assert url_to_vendor_slug("Home-Services", "ABC-Roofing") == slug
    assert vendor_slug_to_url("vendors-home-services") == "/vendors/home-services"


def test_normalize_page_slug():
    assert normalize_page_slug("/Vendors/Home-Services/ABC/") == "vendors-home-services-abc"
    assert normalize_page_slug("Amenities%23Golf") == "amenities#golf"
    assert normalize_page_slug("  community--news ") == "community-news"


def test_needs_slug_repair():
    assert not needs_slug_repair("vendors-home-services-abc")
    assert needs_slug_repair("home-services-abc")
    assert needs_slug_repair("vendors-home-services--abc")
    assert needs_slug_repair("vendors-home-services-abc-")
    assert needs_slug_repair("vendors-home-services-home-services-abc")
    assert needs_slug_repair("vendors-technology-and-electronics-electronics-computer-guy")


def test_repair_salvages_identifier():
    assert (
        repair_vendor_slug("vendors-technology-and-electronics-electronics-computer-guy", "technology-and-electronics")
        == "vendors-technology-and-electronics-computer-guy"
    )
    assert repair_vendor_slug("vendors-home-services--abc", "home-services") == "vendors-home-services-abc"


def test_repair_from_title():
    assert (
        repair_vendor_slug("vendors-home-services-home-services-abc", "home-services", "ABC Roofing")
        == "vendors-home-services-abc-roofing"
    )
