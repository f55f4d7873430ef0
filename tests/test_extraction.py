from map_leads.extraction import EMAIL_REGEX, first_email


def test_first_email_returns_first_match_as_written() -> None:
    text = "Write to Sales@Example.com or support@example.org today."
    assert first_email(text) == "Sales@Example.com"


def test_first_email_inside_markup() -> None:
    html = '<a href="mailto:hola@cafe.pe?subject=Hi">Email</a> <p>info@cafe.pe</p>'
    assert first_email(html) == "hola@cafe.pe"


def test_first_email_without_match() -> None:
    assert first_email("no addresses here @ all") is None
    assert first_email("") is None
    assert EMAIL_REGEX.search("user@localhost") is None
