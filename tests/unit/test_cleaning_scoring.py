from leadpipe.cleaning import is_lead_quality_email, is_valid_email, process_extracted_emails
from leadpipe.scoring import score_company


def test_process_extracted_emails() -> None:
    out = process_extracted_emails([" Jane@Acme.co.uk ", "jane@acme.co.uk", "info@acme.co.uk", "broken@", ""])
    assert out.cleaned == ["jane@acme.co.uk", "info@acme.co.uk"]
    assert out.high_quality == ["jane@acme.co.uk"]


def test_validity() -> None:
    assert is_valid_email("a@b.co")
    assert not is_valid_email("a b@c.co")
    assert not is_valid_email("a@b")


def test_role_mailboxes_are_not_lead_quality() -> None:
    assert not is_lead_quality_email("enquiries@acme.co.uk")
    assert not is_lead_quality_email("no-reply@acme.co.uk")
    assert is_lead_quality_email("jane.doe@acme.co.uk")


def test_role_prefix_matches_whole_local_part() -> None:
    assert is_lead_quality_email("mycontact@acme.co.uk")
    assert is_lead_quality_email("sam.sales@acme.co.uk")
    assert not is_lead_quality_email("Info@acme.co.uk")


def test_score_company() -> None:
    assert score_company([], [], "") == 0
    assert score_company(["a@b.co"], ["0113"], "") == 50
    long_text = "x" * 101 + " about us contact"
    assert score_company(["a@b.co"], ["0113"], long_text) == 90
    assert score_company([], [], "contact") == 10
