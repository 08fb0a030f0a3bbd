from eventcatalog.changes import has_changed, plain_text

BASE = {
    "start_date": "2025-06-01",
    "start_time": "20:00",
    "venue": "Blue Room",
    "price": "$10",
    "description": "Great show",
}


def test_identical_attributes_are_unchanged():
    assert not has_changed(BASE, dict(BASE))


def test_single_scalar_difference_is_a_change():
    assert has_changed(BASE, {**BASE, "price": "$15"})


def test_values_are_trimmed_before_comparison():
    assert not has_changed(BASE, {**BASE, "price": "  $10 "})


def test_missing_field_equals_empty_string():
    assert not has_changed({"price": ""}, {})
    assert not has_changed({"price": None}, {"price": ""})


def test_clearing_a_value_counts_as_a_change():
    assert has_changed(BASE, {**BASE, "price": ""})


def test_non_string_values_are_compared_as_text():
    assert not has_changed({"price": 10}, {"price": "10"})


def test_description_compared_as_plain_text():
    assert not has_changed(BASE, {**BASE, "description": "<p>Great   <b>show</b></p>"})
    assert has_changed(BASE, {**BASE, "description": "<p>Cancelled</p>"})


def test_fields_outside_the_comparison_list_are_ignored():
    assert not has_changed({**BASE, "title": "A"}, {**BASE, "title": "B"})


def test_plain_text():
    assert plain_text("<p>Rock &amp; roll</p><p>All ages</p>") == "Rock & roll All ages"
    assert plain_text("") == ""
