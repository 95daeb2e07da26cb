"""Unit tests for the flat form-encoded query builder."""

from __future__ import annotations

import json
from datetime import date
from urllib.parse import parse_qsl

from solrclient.facets import terms_facet
from solrclient.query import COMPLEX_PHRASE_PREFIX, Query


def _pairs(query: Query):
    return parse_qsl(query.to_string(), keep_blank_values=True)


class TestDefaults:
    def test_empty_query_matches_all(self) -> None:
        assert Query().to_string() == "q=%2A%3A%2A"

    def test_empty_query_has_no_filters(self) -> None:
        assert [k for k, _ in _pairs(Query())] == ["q"]

    def test_explicit_query_replaces_default(self) -> None:
        assert Query().set_query("name:Megumin").to_string() == "q=name%3AMegumin"

    def test_str_matches_to_string(self) -> None:
        query = Query().set_query("a").set_limit(3)
        assert str(query) == query.to_string()


class TestFilters:
    def test_two_filters_sort_and_limit(self) -> None:
        query = (
            Query()
            .add_filters([
                {"field": "age", "value": "[* TO 18]"},
                {"field": "name", "value": '("Megumin" OR "Konami Kirie")'},
            ])
            .set_sort({"rate": "desc"})
            .set_limit(1)
        )
        pairs = _pairs(query)
        assert ("fq", "age:[* TO 18]") in pairs
        assert ("fq", 'name:("Megumin" OR "Konami Kirie")') in pairs
        assert ("sort", "rate desc") in pairs
        assert ("rows", "1") in pairs
        assert "rows=1" in query.to_string().split("&")
        assert len([k for k, _ in pairs if k == "fq"]) == 2

    def test_tuple_filter(self) -> None:
        query = Query().add_filters(("age", 17))
        assert ("fq", "age:17") in _pairs(query)

    def test_multiple_values_are_or_joined(self) -> None:
        query = Query().add_match_filter("occupation", ["Student", "Idol"])
        assert ("fq", "occupation:(Student OR Idol)") in _pairs(query)

    def test_empty_value_list_adds_nothing(self) -> None:
        assert Query().add_match_filter("tags", []).to_string() == "q=%2A%3A%2A"
        query = Query().add_filters({"field": "tags", "value": []})
        assert [k for k, _ in _pairs(query)] == ["q"]

    def test_complex_phrase_prefix(self) -> None:
        query = Query().add_match_filter("name", '"Megu*"', complex_phrase=True)
        assert ("fq", COMPLEX_PHRASE_PREFIX + 'name:"Megu*"') in _pairs(query)

    def test_date_filter_value(self) -> None:
        query = Query().add_match_filter("born", date(2001, 12, 4))
        assert ("fq", "born:2001-12-04T00:00:00.000Z") in _pairs(query)

    def test_range_filter_open_bound(self) -> None:
        query = Query().add_range_filter({"field": "rate", "start": 8})
        assert ("fq", "rate:[8 TO *]") in _pairs(query)

    def test_range_filters_and_joined(self) -> None:
        query = Query().add_range_filter([
            {"field": "rate", "start": 8, "end": 9},
            {"field": "age", "end": 18},
        ])
        assert ("fq", "rate:[8 TO 9] AND age:[* TO 18]") in _pairs(query)

    def test_join_filter(self) -> None:
        query = Query().add_join_filter("id", "owner_id", "people", field="name", value="Megumin")
        assert ("fq", "{!join fromIndex=people from=id to=owner_id v='name:Megumin'}") in _pairs(query)


class TestParameters:
    def test_query_mapping_is_and_joined(self) -> None:
        query = Query().set_query({"name": "Megumin", "age": 14})
        assert ("q", "name:Megumin AND age:14") in _pairs(query)

    def test_paging_and_fields(self) -> None:
        query = Query().set_offset(20).set_limit(10).set_response_fields(["id", "name"])
        pairs = _pairs(query)
        assert ("start", "20") in pairs
        assert ("rows", "10") in pairs
        assert ("fl", "id,name") in pairs

    def test_multi_field_sort_keeps_order(self) -> None:
        query = Query().set_sort({"rate": "desc", "age": "asc"})
        assert ("sort", "rate desc,age asc") in _pairs(query)

    def test_dismax_boosts(self) -> None:
        query = Query().use_extended_dismax().set_query_fields({"title": 2, "body": 1})
        pairs = _pairs(query)
        assert ("defType", "edismax") in pairs
        assert ("qf", "title^2 body^1") in pairs

    def test_raw_parameter_sent_verbatim(self) -> None:
        query = Query().add_raw_parameter("json.nl=map")
        assert query.to_string().endswith("&json.nl=map")

    def test_raw_main_query_replaces_default(self) -> None:
        query = Query().add_raw_parameter("q=name%3AMegumin&json.nl=map")
        assert query.to_string() == "q=name%3AMegumin&json.nl=map"
        assert [k for k, _ in _pairs(query)].count("q") == 1

    def test_debug_renders_boolean(self) -> None:
        assert ("debugQuery", "true") in _pairs(Query().enable_debug())

    def test_cursor(self) -> None:
        assert ("cursorMark", "*") in _pairs(Query().set_cursor())


class TestComponents:
    def test_highlighting_default_markers(self) -> None:
        pairs = _pairs(Query().set_highlighting(fl=["name", "bio"], snippets=2))
        assert ("hl", "true") in pairs
        assert ("hl.fl", "name,bio") in pairs
        assert ("hl.snippets", "2") in pairs
        assert ("hl.simple.pre", "<em>") in pairs
        assert ("hl.simple.post", "</em>") in pairs

    def test_highlighting_off_omits_markers(self) -> None:
        pairs = _pairs(Query().set_highlighting(on=False))
        assert ("hl", "false") in pairs
        assert not [k for k, _ in pairs if k.startswith("hl.simple")]

    def test_grouping(self) -> None:
        pairs = _pairs(Query().set_grouping(field="occupation", limit=3, ngroups=True))
        assert ("group", "true") in pairs
        assert ("group.field", "occupation") in pairs
        assert ("group.limit", "3") in pairs
        assert ("group.ngroups", "true") in pairs
        assert "group.sort" not in dict(pairs)

    def test_more_like_this(self) -> None:
        pairs = _pairs(Query().set_more_like_this(["name", "bio"], count=5))
        assert ("mlt.fl", "name,bio") in pairs
        assert ("mlt.count", "5") in pairs

    def test_terms(self) -> None:
        pairs = _pairs(Query().set_terms("name", prefix="Me", limit=5))
        assert ("terms.fl", "name") in pairs
        assert ("terms.prefix", "Me") in pairs
        assert ("terms.limit", "5") in pairs

    def test_classic_facets(self) -> None:
        pairs = _pairs(Query().set_facets(field=["occupation", "age"], mincount=1))
        assert ("facet", "true") in pairs
        assert ("facet.field", "occupation") in pairs
        assert ("facet.field", "age") in pairs
        assert ("facet.mincount", "1") in pairs

    def test_json_facets_parameter(self) -> None:
        query = Query().set_json_facets({"jobs": terms_facet("occupation", limit=10)})
        value = dict(_pairs(query))["json.facet"]
        assert json.loads(value) == {"jobs": {"type": "terms", "field": "occupation", "limit": 10}}


class TestIdempotence:
    def test_to_string_twice_identical(self) -> None:
        query = (
            Query()
            .set_query("occupation:Student")
            .add_filters(("age", "[* TO 18]"))
            .set_highlighting(fl="name")
            .set_sort({"rate": "desc"})
        )
        assert query.to_string() == query.to_string()
