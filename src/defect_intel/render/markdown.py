"""Render engine results as a Markdown report."""

from __future__ import annotations

from defect_intel.engine import EngineResult
from defect_intel.render._helpers import cell, top_risks

MAX_DEFECT_ROWS = 25


def render_markdown(result: EngineResult) -> str:
    """Produce a full Markdown report from an EngineResult."""
    sections: list[str] = []
    r = result.readiness
    reg = result.registry
    stats = result.graph.stats()

    # ── Title ────────────────────────────────────────────────────────────
    scope = f": `{result.target}`" if result.target else ""
    sections.append(f"# Defect Intelligence Report{scope}\n")

    # ── Summary box ──────────────────────────────────────────────────────
    sections.append("\n".join([
        f"- **Readiness**: {r.readiness} (score {r.overall_score}/100, risk {r.risk_level})",
        f"- **Regression probability**: {r.regression_prob}%",
        f"- **Defects**: {reg.total} (avg score {reg.avg_score})",
        f"- **Graph**: {stats['pages']} pages, {stats['failures']} failures, "
        f"{stats['goals']} goals, {stats['edges']} edges",
    ]) + "\n")

    risks = top_risks(result)
    if risks:
        sections.append("## Top Risks\n")
        sections.append("\n".join(f"{i}. {text}" for i, text in enumerate(risks, 1)) + "\n")

    # ── Readiness ────────────────────────────────────────────────────────
    sections.append("## Production Readiness\n")
    sections.append("| Dimension | Score | Maturity |")
    sections.append("|---|---|---|")
    for name, dim in r.dimensions.items():
        sections.append(f"| {name} | {dim.score} | {dim.maturity} |")
    sections.append("")
    if r.overrides:
        sections.append("Overrides applied:\n")
        sections.append("\n".join(f"- {o}" for o in r.overrides) + "\n")

    # ── Registry ─────────────────────────────────────────────────────────
    if reg.defects:
        sections.append("## Defect Registry\n")
        sev = reg.by_severity
        sections.append(
            f"| Critical | High | Medium | Low |\n|---|---|---|---|\n"
            f"| {sev['critical']} | {sev['high']} | {sev['medium']} | {sev['low']} |\n"
        )
        sections.append("| Score | Severity | Source | Title | Page |")
        sections.append("|---|---|---|---|---|")
        for d in reg.defects[:MAX_DEFECT_ROWS]:
            sections.append(
                f"| {d.score} | {d.severity} | {d.source} | {cell(d.title)} | {cell(d.page, 60)} |"
            )
        if reg.total > MAX_DEFECT_ROWS:
            sections.append(f"\n... and {reg.total - MAX_DEFECT_ROWS} more")
        sections.append("")

    # ── Root causes ──────────────────────────────────────────────────────
    if result.root_causes:
        sections.append("## Root Causes\n")
        for rc in result.root_causes:
            chain = " -> ".join(x for x in (rc.page, rc.element, rc.action) if x) or "unknown origin"
            sections.append(f"### {rc.goal}: {rc.failure} ({rc.severity})\n")
            sections.append(f"- **Chain**: {chain}")
            if rc.reason:
                sections.append(f"- **Why**: {rc.reason}")
            for s in rc.suggestions:
                sections.append(f"- Suggestion: {s}")
            sections.append("")

    if result.clusters.shared:
        sections.append("## Shared Component Suspicions\n")
        sections.append("| Signature | Pages | Occurrences | Confidence | Recovery | Component |")
        sections.append("|---|---|---|---|---|---|")
        for c in result.clusters.shared:
            sections.append(
                f"| `{cell(c.signature, 60)}` | {len(c.affected_pages)} | {c.frequency} | "
                f"{c.confidence:.0%} | +{c.projected_score_recovery} | {c.suspected_component} |"
            )
        sections.append("")

    # ── Page risk ────────────────────────────────────────────────────────
    if result.risk.pages:
        sections.append("## Page Risk\n")
        sections.append("| Page | Probability | Level | Top Factor |")
        sections.append("|---|---|---|---|")
        for p in result.risk.pages:
            sections.append(f"| `{p.label}` | {p.probability}% | {p.risk_level} | {p.top_factor} |")
        sections.append("")
        for rec in result.risk.recommendations:
            sections.append(f"- **{rec.priority}** {rec.title}: {rec.action}")
        if result.risk.recommendations:
            sections.append("")

    return "\n".join(sections)
