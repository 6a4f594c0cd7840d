"""Tests for URL canonicalization and shared helpers."""

from __future__ import annotations

import pytest

from defect_intel.utils import make_node_id, normalize_url, read_json, round_half_up


class TestNormalizeUrl:
    def test_case_folds(self):
        assert normalize_url("HTTPS://Shop.Example.com/Login") == "https://shop.example.com/login"

    def test_strips_trailing_slash(self):
        assert normalize_url("https://a.com/login/") == normalize_url("https://a.com/login")

    def test_root_path_kept(self):
        assert normalize_url("https://a.com") == "https://a.com/"
        assert normalize_url("https://a.com/") == "https://a.com/"

    def test_sorts_query_parameters(self):
        assert normalize_url("https://a.com/p?b=2&a=1") == normalize_url("https://a.com/p?a=1&b=2")
        assert normalize_url("https://a.com/p?b=2&a=1") == "https://a.com/p?a=1&b=2"

    def test_query_case_folded_before_sorting(self):
        assert normalize_url("https://a.com/p?B=1&a=2") == normalize_url("https://a.com/p?a=2&b=1")
        assert normalize_url("https://a.com/p?B=1&a=2") == "https://a.com/p?a=2&b=1"

    def test_drops_plain_fragment(self):
        assert normalize_url("https://a.com/docs#section-2") == "https://a.com/docs"

    def test_keeps_client_route_fragment(self):
        assert normalize_url("https://a.com/#/cart") == "https://a.com/#/cart"
        assert normalize_url("https://a.com/#!/cart") != normalize_url("https://a.com/#!/home")

    def test_empty(self):
        assert normalize_url("") == ""
        assert normalize_url(None) == ""

    def test_unparseable_falls_back_to_raw(self):
        assert normalize_url("http://[::1") == "http://[::1"

    def test_relative_path(self):
        assert normalize_url("/Checkout/") == "/checkout"


class TestRoundHalfUp:
    @pytest.mark.parametrize("value,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (83.57, 84)])
    def test_halves_round_up(self, value, expected):
        assert round_half_up(value) == expected


class TestMakeNodeId:
    def test_replaces_unsafe_characters(self):
        assert make_node_id("page", "https://a.com/x?y=1") == "page:https_//a_com/x_y_1"

    def test_type_prefix_separates_namespaces(self):
        assert make_node_id("page", "login") != make_node_id("element", "login")


class TestReadJson:
    def test_missing_file_is_none(self, tmp_path):
        assert read_json(tmp_path / "nope.json") is None

    def test_corrupt_file_is_none(self, tmp_path):
        p = tmp_path / "bad.json"
        p.write_text("{not json")
        assert read_json(p) is None

    def test_reads_valid_file(self, tmp_path):
        p = tmp_path / "ok.json"
        p.write_text('{"a": 1}')
        assert read_json(p) == {"a": 1}
