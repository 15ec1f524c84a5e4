import pytest

from conftest import FakeResponse, kendo_page
from tcmsp_harvest.errors import ExtractionError
from tcmsp_harvest.session_token import fetch_token, parse_token


def test_token_from_search_form(make_fetcher):
    fetcher = make_fetcher(lambda url, params: FakeResponse(200, kendo_page()))
    assert fetch_token(fetcher) == "0123abcd"


def test_token_from_link_when_form_is_missing():
    page = '<html><a href="tcmspsearch.php?qs=herb_all_name&q=x&token=9f8e7d6c">x</a></html>'
    assert parse_token(page) == "9f8e7d6c"


def test_missing_token():
    with pytest.raises(ExtractionError):
        parse_token("<html><form id='SearchForm'><input name='q'></form></html>")
