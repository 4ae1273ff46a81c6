import xml.etree.ElementTree as ET

import pytest

from aggcat_helper.xml_parser import parse_xml, snake_case


@pytest.mark.parametrize(
    ("tag", "expected"),
    [
        ("InstitutionDetail", "institution_detail"),
        ("displayOrder", "display_order"),
        ("homeUrl", "home_url"),
        ("key", "key"),
        ("HTTPStatus", "http_status"),
    ],
)
def test_snake_case(tag: str, expected: str) -> None:
    assert snake_case(tag) == expected


def test_parse_xml_nests_and_groups_repeated_elements() -> None:
    text = """
    <ns:Root xmlns:ns="urn:test">
      <ns:singleChild>one</ns:singleChild>
      <ns:item><ns:name>a</ns:name></ns:item>
      <ns:item><ns:name>b</ns:name></ns:item>
      <ns:empty/>
    </ns:Root>
    """
    assert parse_xml(text) == {
        "root": {
            "single_child": "one",
            "item": [{"name": "a"}, {"name": "b"}],
            "empty": None,
        }
    }


def test_parse_xml_empty_body() -> None:
    assert parse_xml("") is None
    assert parse_xml("  \n") is None


def test_parse_xml_malformed() -> None:
    with pytest.raises(ET.ParseError):
        _ = parse_xml("<open>")
