"""Tests for the page-level extractors: emails, phones, text and structured fields."""

from leadpipe.crawler.extractor import extract_emails, extract_phones, extract_text
from leadpipe.crawler.structured import (
    SocialLinks,
    extract_address_guess,
    extract_company_name,
    extract_social_links,
)


class TestExtractEmails:
    def test_plain_and_mailto_first_seen_order(self) -> None:
        html = (
            "<p>Write to Bob@Acme.co.uk</p>"
            '<a href="mailto:sales@acme.co.uk?subject=Hi">Sales</a>'
            "<p>bob@acme.co.uk again</p>"
        )
        assert extract_emails(html) == ["bob@acme.co.uk", "sales@acme.co.uk"]

    def test_deobfuscates(self) -> None:
        assert extract_emails("jane [at] acme [dot] co.uk") == ["jane@acme.co.uk"]
        assert extract_emails("jane(at)acme(dot)com") == ["jane@acme.com"]

    def test_html_entities(self) -> None:
        assert extract_emails("info&#64;acme.co.uk") == ["info@acme.co.uk"]

    def test_drops_junk(self) -> None:
        html = "logo@2x.png x@sentry.wixpress.com test@example.com real@acme.co.uk"
        assert extract_emails(html) == ["real@acme.co.uk"]

    def test_drops_percent_encoding_artifact(self) -> None:
        html = '<a href="mailto:%20info@acme.co.uk">info@acme.co.uk</a>'
        assert extract_emails(html) == ["info@acme.co.uk"]

    def test_empty(self) -> None:
        assert extract_emails("") == []


class TestExtractText:
    def test_skips_scripts_and_comments(self) -> None:
        html = "<body><p>Hello</p><script>var x=1;</script><!-- hidden --><style>p{}</style><p>world</p></body>"
        assert extract_text(html) == "Hello world"


class TestExtractPhones:
    def test_tel_links_then_text(self) -> None:
        html = '<body><a href="tel:+44%20113%20200%200000">Call</a><p>Or 0113 496 0000 today</p></body>'
        assert extract_phones(html) == ["+44 113 200 0000", "0113 496 0000"]

    def test_short_numbers_ignored(self) -> None:
        assert extract_phones("<p>Open 9 to 5, est. 1999</p>") == []


class TestSocialLinks:
    def test_first_link_per_platform(self) -> None:
        html = (
            '<a href="https://uk.linkedin.com/company/acme">li</a>'
            '<a href="https://www.linkedin.com/company/other">li2</a>'
            '<a href="https://x.com/acme">x</a>'
            '<a href="https://notfacebook.com/acme">nope</a>'
        )
        socials = extract_social_links(html)
        assert socials.linkedin == "https://uk.linkedin.com/company/acme"
        assert socials.twitter == "https://x.com/acme"
        assert socials.facebook is None

    def test_merge_missing_keeps_first(self) -> None:
        a = SocialLinks(facebook="fb-1")
        a.merge_missing(SocialLinks(facebook="fb-2", instagram="ig-2"))
        assert (a.facebook, a.instagram) == ("fb-1", "ig-2")
        assert a.any()
        assert not SocialLinks().any()


class TestAddressAndName:
    def test_address_tag(self) -> None:
        html = "<body><address>  1 Park Row,\n Leeds </address></body>"
        assert extract_address_guess(html) == "1 Park Row, Leeds"

    def test_address_from_postcode_line(self) -> None:
        html = "<body><p>Welcome</p><p>Find us at Leeds LS1 4AB</p></body>"
        assert extract_address_guess(html) == "Find us at Leeds LS1 4AB"

    def test_no_address(self) -> None:
        assert extract_address_guess("<body><p>Welcome</p></body>") is None

    def test_company_name_precedence(self) -> None:
        og = '<head><meta property="og:site_name" content="Acme Ltd"><title>Other</title></head>'
        assert extract_company_name(og) == "Acme Ltd"
        assert extract_company_name("<head><title>Acme Dental | Welcome to our practice</title></head>") == "Acme Dental"
        assert extract_company_name("<body><h1>Bright Smiles</h1></body>") == "Bright Smiles"
        assert extract_company_name("<body></body>") is None
