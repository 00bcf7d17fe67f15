"""Tests for generate_lead_key: priority order and normalization."""

from leadpipe.billing.lead_key import generate_lead_key
from leadpipe.models import CompanyIdentity, DeliveryContact


def _contact(email: str = "jane@acme.co.uk", **company: object) -> DeliveryContact:
    return DeliveryContact(email=email, company=CompanyIdentity(**company))  # type: ignore[arg-type]


class TestDomainKey:
    def test_explicit_domain_wins(self) -> None:
        c = _contact(domain="Acme.co.uk", website_url="https://other.com", google_maps_place_id="P1", name="Acme")
        assert generate_lead_key(c) == "domain:acme.co.uk"

    def test_www_and_scheme_stripped(self) -> None:
        assert generate_lead_key(_contact(domain="https://www.Acme.co.uk/contact")) == "domain:acme.co.uk"

    def test_falls_back_to_website_url(self) -> None:
        c = _contact(domain="  ", website_url="http://www.example-dental.com/about?x=1")
        assert generate_lead_key(c) == "domain:example-dental.com"

    def test_people_at_same_company_share_key(self) -> None:
        a = _contact("jane@acme.co.uk", domain="acme.co.uk")
        b = _contact("bob@acme.co.uk", domain="acme.co.uk")
        assert generate_lead_key(a) == generate_lead_key(b)


class TestPlaceKey:
    def test_place_id_case_preserved(self) -> None:
        assert generate_lead_key(_contact(google_maps_place_id=" PLACE123 ", name="Acme")) == "place:PLACE123"


class TestCompanyKey:
    def test_name_city_country(self) -> None:
        c = _contact(name="Acme Dental Ltd.", city="Leeds", country="United Kingdom")
        assert generate_lead_key(c) == "company:acme_dental_ltd_leeds_united_kingdom"

    def test_missing_location_parts_omitted(self) -> None:
        assert generate_lead_key(_contact(name="Acme & Sons", country="UK")) == "company:acme_sons_uk"
        assert generate_lead_key(_contact(name="Acme")) == "company:acme"

    def test_name_without_alphanumerics_falls_through(self) -> None:
        assert generate_lead_key(_contact("jane@acme.co.uk", name="!!!")) == "email:acme.co.uk"


class TestEmailKey:
    def test_email_domain(self) -> None:
        assert generate_lead_key(_contact("Jane@Acme.CO.UK")) == "email:acme.co.uk"

    def test_unknown_when_no_at_sign(self) -> None:
        assert generate_lead_key(_contact("not-an-email")) == "email:unknown"
