"""Tests for KnowledgeGraph dedup and the per-source graph builder."""

from __future__ import annotations

from defect_intel.config import IngestionCaps
from defect_intel.graph import KnowledgeGraph, NodeType, Relation, build_knowledge_graph
from defect_intel.ingest import RecordHistory, build_window


def failing_flow(flow_id: str = "login", url: str = "https://a.com/login", reason: dict | None = None) -> dict:
    step = {"label": "Click sign in", "action": "click", "verdict": "fail"}
    if reason is not None:
        step["reason"] = reason
    return {
        "flowId": flow_id,
        "name": flow_id.title(),
        "url": url,
        "verdict": "fail",
        "steps": [{"label": "Open", "verdict": "pass"}, step],
    }


def passing_flow(url: str = "https://a.com/search") -> dict:
    return {"flowId": "search", "url": url, "verdict": "pass",
            "steps": [{"label": "Type", "verdict": "pass"}]}


def capture(url: str, requests: list[dict]) -> dict:
    return {"url": url, "requests": requests}


def req(url: str, status: int | None = 500, issues: int = 1) -> dict:
    return {
        "method": "GET", "url": url, "status": status, "cluster": "API",
        "issues": [{"msg": f"Issue {i}", "severity": "error"} for i in range(issues)],
    }


def dom(url: str, elements: list[dict]) -> dict:
    return {"url": url, "elements": elements}


def el(css: str, score: float, dynamic: bool = False) -> dict:
    return {"tag": "button", "cssPath": css, "stabilityScore": score, "isDynamic": dynamic,
            "recommendedSelector": "[data-testid=x]"}


def build(history: RecordHistory, **kwargs) -> KnowledgeGraph:
    return build_knowledge_graph(build_window(history, **kwargs))


class TestKnowledgeGraph:
    def test_node_reinsertion_is_noop(self):
        g = KnowledgeGraph()
        first = g.add_node(NodeType.PAGE, "https://a.com/", label="first", severity="high")
        second = g.add_node(NodeType.PAGE, "https://a.com/", label="second")
        assert first == second
        assert len(g) == 1
        assert g.get_node(first).label == "first"
        assert g.get_node(first).severity == "high"

    def test_same_label_different_type_distinct(self):
        g = KnowledgeGraph()
        g.add_node(NodeType.PAGE, "login")
        g.add_node(NodeType.GOAL, "login")
        assert len(g) == 2

    def test_duplicate_edge_dropped(self):
        g = KnowledgeGraph()
        a = g.add_node(NodeType.PAGE, "a")
        b = g.add_node(NodeType.API, "b")
        assert g.add_edge(a, b, Relation.CALLS) is True
        assert g.add_edge(a, b, Relation.CALLS, weight=5) is False
        assert len(g.all_edges()) == 1
        assert g.all_edges()[0].weight == 1

    def test_same_endpoints_other_relation_distinct(self):
        g = KnowledgeGraph()
        a = g.add_node(NodeType.PAGE, "a")
        b = g.add_node(NodeType.ELEMENT, "b")
        g.add_edge(a, b, Relation.HAS)
        g.add_edge(a, b, Relation.CALLS)
        assert len(g.all_edges()) == 2

    def test_enrich_only_adds_missing_keys(self):
        g = KnowledgeGraph()
        nid = g.add_node(NodeType.FAILURE, "f", metadata={"why": "original"})
        g.enrich(nid, why="changed", category="Network")
        assert g.get_node(nid).metadata == {"why": "original", "category": "Network"}

    def test_predecessor_by_relation(self):
        g = KnowledgeGraph()
        a = g.add_node(NodeType.ACTION, "a")
        f = g.add_node(NodeType.FAILURE, "f")
        g.add_edge(a, f, Relation.CAUSES)
        assert g.predecessor(f, Relation.CAUSES).id == a
        assert g.predecessor(f, Relation.TRIGGERS) is None


class TestFunctionalIngest:
    def test_failing_flow_chain(self):
        g = build(RecordHistory(functional=[{"results": [failing_flow()]}]))
        stats = g.stats()
        assert stats == {"pages": 1, "elements": 1, "apis": 0, "actions": 1,
                         "failures": 1, "goals": 1, "edges": 4}
        relations = [e.relation for e in g.all_edges()]
        assert relations == [Relation.HAS, Relation.TRIGGERS, Relation.CAUSES, Relation.IMPACTS]
        goal = g.nodes_matching(lambda n: n.type == NodeType.GOAL)[0]
        assert goal.label == "User Authentication"

    def test_passing_flows_not_materialized(self):
        g = build(RecordHistory(functional=[{"results": [passing_flow()]}]))
        assert len(g) == 0
        assert g.all_edges() == []

    def test_failure_severity_from_formula(self):
        g = build(RecordHistory(functional=[{"results": [failing_flow("search")]}]))
        failure = g.nodes_matching(lambda n: n.type == NodeType.FAILURE)[0]
        assert failure.severity == "critical"

    def test_missing_reason_placeholder(self):
        g = build(RecordHistory(functional=[{"results": [failing_flow()]}]))
        failure = g.nodes_matching(lambda n: n.type == NodeType.FAILURE)[0]
        assert failure.label == "Step Failure"
        assert failure.metadata["suggestions"] == []

    def test_unknown_flow_goal_is_flow_id(self):
        g = build(RecordHistory(functional=[{"results": [failing_flow("checkout")]}]))
        goal = g.nodes_matching(lambda n: n.type == NodeType.GOAL)[0]
        assert goal.label == "checkout"

    def test_run_cap(self):
        runs = [{"results": [failing_flow(url=f"https://a.com/p{i}")]} for i in range(15)]
        g = build(RecordHistory(functional=runs))
        assert g.stats()["pages"] == 10

    def test_repeated_runs_idempotent(self):
        once = build(RecordHistory(functional=[{"results": [failing_flow()]}]))
        twice = build(RecordHistory(functional=[{"results": [failing_flow()]}] * 2))
        assert len(once) == len(twice)
        assert len(once.all_edges()) == len(twice.all_edges())


class TestNetworkIngest:
    def test_only_endpoints_with_issues(self):
        history = RecordHistory(network={"s1": capture("https://a.com/", [
            req("https://a.com/api/a"), req("https://a.com/api/ok", status=200, issues=0),
        ])})
        g = build(history)
        assert g.stats()["apis"] == 1
        assert g.stats()["failures"] == 1
        assert {e.relation for e in g.all_edges()} == {Relation.CALLS, Relation.CAUSES}

    def test_endpoint_cap_per_page(self):
        requests = [req(f"https://a.com/api/{i}") for i in range(40)]
        g = build(RecordHistory(network={"s1": capture("https://a.com/", requests)}))
        assert g.stats()["apis"] == 30

    def test_status_band_severity(self):
        g = build(RecordHistory(network={"s1": capture("https://a.com/", [
            req("https://a.com/none", status=None), req("https://a.com/nf", status=404),
            req("https://a.com/moved", status=301),
        ])}))
        sev = {n.label: n.severity for n in g.nodes_matching(lambda n: n.type == NodeType.API)}
        assert sev == {"https://a.com/none": "critical", "https://a.com/nf": "high",
                       "https://a.com/moved": "medium"}

    def test_one_failure_per_issue(self):
        g = build(RecordHistory(network={"s1": capture("https://a.com/", [req("https://a.com/x", issues=3)])}))
        assert g.stats()["failures"] == 3


class TestDomIngest:
    def test_unstable_elements_only(self):
        g = build(RecordHistory(dom={"d1": dom("https://a.com/", [el("a", 10), el("b", 50), el("c", 49)])}))
        assert g.stats()["elements"] == 2
        severities = sorted(n.severity for n in g.nodes_matching(lambda n: n.type == NodeType.ELEMENT))
        assert severities == ["high", "medium"]

    def test_dynamic_element_gets_fragility_failure(self):
        g = build(RecordHistory(dom={"d1": dom("https://a.com/", [el("a", 10, dynamic=True)])}))
        failure = g.nodes_matching(lambda n: n.type == NodeType.FAILURE)[0]
        assert failure.metadata["category"] == "DOM Stability"
        assert failure.label == "Unstable selector: button"

    def test_element_cap_per_page(self):
        elements = [el(f"div > button:nth-child({i})", 10) for i in range(25)]
        g = build(RecordHistory(dom={"d1": dom("https://a.com/", elements)}))
        assert g.stats()["elements"] == 20


class TestCrossSource:
    def test_same_page_across_sources_is_one_node(self):
        history = RecordHistory(
            functional=[{"results": [failing_flow(url="https://A.com/login/")]}],
            network={"s1": capture("https://a.com/login", [req("https://a.com/api")])},
            dom={"d1": dom("https://a.com/login#top", [el("a", 10)])},
        )
        assert build(history).stats()["pages"] == 1

    def test_target_filter(self):
        history = RecordHistory(
            functional=[{"results": [failing_flow(url="https://a.com/login"),
                                     failing_flow("addToCart", url="https://a.com/cart")]}],
            network={"s1": capture("https://a.com/cart", [req("https://a.com/api")])},
        )
        g = build(history, target_url="https://a.com/login/")
        pages = g.nodes_matching(lambda n: n.type == NodeType.PAGE)
        assert [p.label for p in pages] == ["https://a.com/login"]
        assert g.stats()["apis"] == 0

    def test_custom_caps(self):
        requests = [req(f"https://a.com/api/{i}") for i in range(10)]
        g = build(RecordHistory(network={"s1": capture("https://a.com/", requests)}),
                  caps=IngestionCaps(endpoints_per_page=3))
        assert g.stats()["apis"] == 3

    def test_empty_sources(self):
        g = build(RecordHistory())
        assert len(g) == 0
        assert g.all_edges() == []
