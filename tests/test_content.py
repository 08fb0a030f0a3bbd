from eventcatalog.content import description_paragraphs, render_event_content


def test_description_paragraphs_from_html():
    html = "<p>Doors at 7.</p><p>All <b>ages</b> welcome.</p>"
    assert description_paragraphs(html) == ["Doors at 7.", "All ages welcome."]


def test_description_paragraphs_from_plain_text():
    text = "First line.\n\nSecond   paragraph.\n"
    assert description_paragraphs(text) == ["First line.", "Second paragraph."]


def test_render_includes_details_and_paragraphs():
    html = render_event_content({
        "start_date": "2025-06-01",
        "start_time": "20:00",
        "price": "",
        "description": "Doors at 7.",
    })

    assert 'data-start-date="2025-06-01"' in html
    assert 'data-start-time="20:00"' in html
    assert "data-price" not in html
    assert "<p>Doors at 7.</p>" in html


def test_render_escapes_values():
    html = render_event_content({"venue": '"Quoted" Hall', "description": "<p>Rock &amp; roll</p>"})

    assert "&#34;Quoted&#34; Hall" in html
    assert "<p>Rock &amp; roll</p>" in html
