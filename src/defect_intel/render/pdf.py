"""Render engine results as a styled PDF report.

Uses fpdf2 drawing primitives (no markdown-to-HTML conversion).
Install via: pip install defect-intel[pdf]
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from defect_intel.engine import EngineResult
from defect_intel.render._helpers import latin1, top_risks

# ── Color palette ──────────────────────────────────────────────────────────

_SEV_COLORS: dict[str, tuple[tuple[int, int, int], tuple[int, int, int]]] = {
    # severity -> (text_rgb, bg_rgb)
    "critical": ((185, 28, 28), (254, 226, 226)),
    "high":     ((194, 80, 0), (255, 237, 213)),
    "medium":   ((161, 120, 0), (254, 249, 195)),
    "low":      ((75, 85, 99), (229, 231, 235)),
}

_VERDICT_COLORS = {
    "CRITICAL": ((185, 28, 28), (254, 226, 226)),
    "HIGH":     ((194, 80, 0), (255, 237, 213)),
    "MEDIUM":   ((161, 120, 0), (254, 249, 195)),
    "LOW":      ((22, 101, 52), (220, 252, 231)),
}

_CHARCOAL = (31, 41, 55)
_WHITE = (255, 255, 255)
_ALT_ROW = (248, 249, 250)
_BODY = (30, 30, 30)
_MUTED = (100, 100, 100)
_DIVIDER = (200, 200, 200)

_DIMENSION_COLS = (60, 30, 80)                   # total = 170 < 180
_DEFECT_COLS = (14, 20, 22, 64, 50)              # total = 170 < 180
_CLUSTER_COLS = (60, 16, 22, 22, 50)             # total = 170 < 180
_RISK_COLS = (60, 25, 25, 60)                    # total = 170 < 180

MAX_DEFECT_ROWS = 25


def render_pdf(result: EngineResult, output_path: Path) -> None:
    """Render the engine result to a PDF file."""
    try:
        from fpdf import FPDF
        from fpdf.enums import XPos, YPos
    except ImportError:
        raise ImportError(
            "PDF output requires 'fpdf2'. "
            "Install it with: pip install defect-intel[pdf]"
        )

    pdf = _DefectReportPDF(result, FPDF, XPos, YPos)
    pdf.render()
    pdf.output(str(output_path))


class _DefectReportPDF:
    """Builds a multi-page PDF from an EngineResult using fpdf2 drawing primitives."""

    def __init__(self, result: EngineResult, fpdf_cls, xpos_enum, ypos_enum):
        self._result = result
        self._XPos = xpos_enum
        self._YPos = ypos_enum
        self._title = result.target or "All pages"
        self._date = date.today().isoformat()

        self._pdf = fpdf_cls()
        self._pdf.set_auto_page_break(auto=True, margin=20)
        self._pdf.set_margins(15, 20, 15)
        self._content_w = 180  # 210 - 15 - 15

    def output(self, path: str) -> None:
        self._pdf.output(path)

    # ── Header / Footer ───────────────────────────────────────────────

    def _add_page(self) -> None:
        self._pdf.add_page()
        if self._pdf.page_no() > 1:
            self._pdf.set_font("Helvetica", "B", 8)
            self._pdf.set_text_color(*_MUTED)
            self._pdf.set_y(10)
            self._pdf.cell(self._content_w / 2, 5, self._safe(f"{self._title} -- Defect Report"), new_x=self._XPos.RIGHT, new_y=self._YPos.TOP)
            self._pdf.set_font("Helvetica", "", 8)
            self._pdf.cell(self._content_w / 2, 5, self._date, align="R", new_x=self._XPos.LMARGIN, new_y=self._YPos.NEXT)
            self._pdf.set_draw_color(*_DIVIDER)
            self._pdf.line(15, 16, 195, 16)
            self._pdf.set_y(20)

    def _footer(self) -> None:
        """Draw footer on current page (called before adding next page).

        Must disable auto_page_break to avoid fpdf2 inserting a blank page
        when we draw below the break threshold.
        """
        self._pdf.set_auto_page_break(auto=False)
        self._pdf.set_draw_color(*_DIVIDER)
        self._pdf.line(15, 282, 195, 282)
        self._pdf.set_y(283)
        self._pdf.set_font("Helvetica", "", 7.5)
        self._pdf.set_text_color(*_MUTED)
        self._pdf.cell(self._content_w, 5, f"Page {self._pdf.page_no()}", align="R")
        self._pdf.set_auto_page_break(auto=True, margin=20)

    # ── Drawing helpers ────────────────────────────────────────────────

    def _safe(self, text) -> str:
        return latin1(str(text))

    def _set_body_text(self) -> None:
        self._pdf.set_font("Helvetica", "", 9)
        self._pdf.set_text_color(*_BODY)

    def _divider(self) -> None:
        y = self._pdf.get_y() + 2
        self._pdf.set_draw_color(*_DIVIDER)
        self._pdf.line(15, y, 195, y)
        self._pdf.set_y(y + 4)

    def _heading(self, text: str, level: int = 2) -> None:
        sz = {2: 14, 3: 11}.get(level, 11)
        spacing = {2: 8, 3: 5}.get(level, 5)
        self._ensure_space(sz + spacing + 5)
        self._pdf.ln(spacing)
        self._pdf.set_font("Helvetica", "B", sz)
        self._pdf.set_text_color(*_BODY)
        self._pdf.cell(self._content_w, sz * 0.5, self._safe(text), new_x=self._XPos.LMARGIN, new_y=self._YPos.NEXT)
        self._pdf.ln(2)

    def _bullet(self, text: str, indent: float = 4) -> None:
        self._set_body_text()
        self._pdf.set_x(self._pdf.get_x() + indent)
        cy = self._pdf.get_y() + 1.5
        self._pdf.set_fill_color(*_BODY)
        self._pdf.ellipse(self._pdf.get_x(), cy, 1.2, 1.2, style="F")
        self._pdf.set_x(self._pdf.get_x() + 3)
        self._pdf.multi_cell(self._content_w - indent - 7, 4, self._safe(text), new_x=self._XPos.LMARGIN, new_y=self._YPos.NEXT)

    def _ensure_space(self, needed: float = 20) -> None:
        """Add a new page if less than `needed` mm remain."""
        if self._pdf.get_y() + needed > 275:
            self._footer()
            self._add_page()

    def _table_header(self, cols: tuple[float, ...], headers: list[str]) -> None:
        self._ensure_space(12)
        self._pdf.set_fill_color(*_CHARCOAL)
        self._pdf.set_text_color(*_WHITE)
        self._pdf.set_font("Helvetica", "B", 7.5)
        for i, hdr in enumerate(headers):
            last = i == len(headers) - 1
            self._pdf.cell(
                cols[i], 6, self._safe(hdr), border=0, fill=True,
                new_x=self._XPos.LMARGIN if last else self._XPos.RIGHT,
                new_y=self._YPos.NEXT if last else self._YPos.TOP,
            )

    def _table_row(self, cols: tuple[float, ...], values: list[str], row_idx: int,
                   sev_col: int | None = None, sev: str = "low") -> None:
        """Draw a data row, alternating background; ``sev_col`` is tinted by severity."""
        self._ensure_space(8)
        fill = row_idx % 2 == 1
        if fill:
            self._pdf.set_fill_color(*_ALT_ROW)
        self._pdf.set_font("Helvetica", "", 7.5)
        for i, val in enumerate(values):
            last = i == len(values) - 1
            if i == sev_col:
                self._pdf.set_text_color(*_SEV_COLORS.get(sev, _SEV_COLORS["low"])[0])
                self._pdf.set_font("Helvetica", "B", 7.5)
            else:
                self._pdf.set_text_color(*_BODY)
                self._pdf.set_font("Helvetica", "", 7.5)
            text = self._safe(val)
            while text and self._pdf.get_string_width(text) > cols[i] - 1:
                text = text[:-1]
            self._pdf.cell(
                cols[i], 5.5, text, border=0, fill=fill,
                new_x=self._XPos.LMARGIN if last else self._XPos.RIGHT,
                new_y=self._YPos.NEXT if last else self._YPos.TOP,
            )

    # ── Main render ────────────────────────────────────────────────────

    def render(self) -> None:
        self._add_page()
        self._render_title()
        self._render_verdict_card()
        self._render_dimensions()
        self._render_registry()
        self._render_root_causes()
        self._render_clusters()
        self._render_page_risk()
        self._footer()

    def _render_title(self) -> None:
        self._pdf.ln(15)
        self._pdf.set_font("Helvetica", "B", 20)
        self._pdf.set_text_color(*_BODY)
        self._pdf.cell(self._content_w, 10, "Defect Intelligence Report", new_x=self._XPos.LMARGIN, new_y=self._YPos.NEXT)
        self._pdf.set_font("Helvetica", "", 10)
        self._pdf.set_text_color(*_MUTED)
        self._pdf.cell(self._content_w, 6, self._safe(self._title), new_x=self._XPos.LMARGIN, new_y=self._YPos.NEXT)
        self._pdf.cell(self._content_w, 6, self._date, new_x=self._XPos.LMARGIN, new_y=self._YPos.NEXT)
        self._pdf.ln(6)
        self._divider()

    def _render_verdict_card(self) -> None:
        r = self._result.readiness
        reg = self._result.registry
        text_c, bg_c = _VERDICT_COLORS[r.risk_level]
        risks = top_risks(self._result)
        card_h = 8 + 10 + (len(risks) * 7 + 4 if risks else 0) + 6

        self._heading("Production Readiness")
        self._ensure_space(card_h + 5)
        card_x, card_y = 15, self._pdf.get_y()
        self._pdf.set_fill_color(*bg_c)
        self._pdf.rect(card_x, card_y, self._content_w, card_h, style="F")

        self._pdf.set_xy(card_x + 4, card_y + 3)
        self._pdf.set_font("Helvetica", "B", 10)
        self._pdf.set_text_color(*text_c)
        self._pdf.cell(
            self._content_w - 8, 6,
            self._safe(f"{r.readiness} -- score {r.overall_score}/100, "
                       f"regression probability {r.regression_prob}%"),
            new_x=self._XPos.LMARGIN, new_y=self._YPos.NEXT,
        )

        # Severity count boxes
        self._pdf.set_xy(card_x + 4, card_y + 11)
        for sev, count in reg.by_severity.items():
            tc, bc = _SEV_COLORS[sev]
            x, y = self._pdf.get_x(), self._pdf.get_y()
            box_w = 30
            self._pdf.set_fill_color(*bc)
            self._pdf.rect(x, y, box_w, 7, style="F")
            self._pdf.set_font("Helvetica", "B", 8)
            self._pdf.set_text_color(*tc)
            self._pdf.set_xy(x, y)
            self._pdf.cell(box_w, 3.5, sev.title(), align="C", new_x=self._XPos.LEFT, new_y=self._YPos.NEXT)
            self._pdf.set_font("Helvetica", "B", 10)
            self._pdf.cell(box_w, 3.5, str(count), align="C", new_x=self._XPos.RIGHT, new_y=self._YPos.TOP)
            self._pdf.set_xy(x + box_w + 4, y)

        if risks:
            self._pdf.set_xy(card_x + 4, card_y + 20)
            self._pdf.set_font("Helvetica", "B", 8)
            self._pdf.set_text_color(*text_c)
            self._pdf.cell(self._content_w - 8, 4, f"Top risks ({len(risks)}):", new_x=self._XPos.LMARGIN, new_y=self._YPos.NEXT)
            self._pdf.set_font("Helvetica", "", 8)
            for risk in risks:
                self._pdf.set_x(card_x + 6)
                self._pdf.cell(2, 4, "-", new_x=self._XPos.RIGHT, new_y=self._YPos.TOP)
                self._pdf.multi_cell(self._content_w - 14, 4, self._safe(risk), new_x=self._XPos.LMARGIN, new_y=self._YPos.NEXT)

        self._pdf.set_y(card_y + card_h + 4)
        for override in r.overrides:
            self._bullet(override)

    def _render_dimensions(self) -> None:
        self._heading("Dimensions", 3)
        self._table_header(_DIMENSION_COLS, ["Dimension", "Score", "Maturity"])
        for i, (name, dim) in enumerate(self._result.readiness.dimensions.items()):
            self._table_row(_DIMENSION_COLS, [name, str(dim.score), dim.maturity], i)

    def _render_registry(self) -> None:
        reg = self._result.registry
        if not reg.defects:
            return
        self._divider()
        self._heading(f"Defect Registry ({reg.total}, avg score {reg.avg_score})")
        self._table_header(_DEFECT_COLS, ["Score", "Severity", "Source", "Title", "Page"])
        for i, d in enumerate(reg.defects[:MAX_DEFECT_ROWS]):
            self._table_row(
                _DEFECT_COLS, [str(d.score), d.severity.upper(), d.source, d.title, d.page],
                i, sev_col=1, sev=d.severity,
            )
        if reg.total > MAX_DEFECT_ROWS:
            self._set_body_text()
            self._pdf.set_text_color(*_MUTED)
            self._pdf.cell(self._content_w, 5, f"... and {reg.total - MAX_DEFECT_ROWS} more", new_x=self._XPos.LMARGIN, new_y=self._YPos.NEXT)

    def _render_root_causes(self) -> None:
        if not self._result.root_causes:
            return
        self._divider()
        self._heading("Root Causes")
        for rc in self._result.root_causes:
            self._heading(f"{rc.goal}: {rc.failure} ({rc.severity})", 3)
            chain = " -> ".join(x for x in (rc.page, rc.element, rc.action) if x) or "unknown origin"
            self._bullet(f"Chain: {chain}")
            if rc.reason:
                self._bullet(f"Why: {rc.reason}")
            for s in rc.suggestions:
                self._bullet(f"Suggestion: {s}")

    def _render_clusters(self) -> None:
        shared = self._result.clusters.shared
        if not shared:
            return
        self._divider()
        self._heading("Shared Component Suspicions")
        self._table_header(_CLUSTER_COLS, ["Signature", "Pages", "Confidence", "Recovery", "Component"])
        for i, c in enumerate(shared):
            self._table_row(_CLUSTER_COLS, [
                c.signature, str(len(c.affected_pages)), f"{c.confidence:.0%}",
                f"+{c.projected_score_recovery}", c.suspected_component,
            ], i)

    def _render_page_risk(self) -> None:
        risk = self._result.risk
        if not risk.pages:
            return
        self._divider()
        self._heading("Page Risk")
        self._table_header(_RISK_COLS, ["Page", "Probability", "Level", "Top Factor"])
        for i, p in enumerate(risk.pages):
            self._table_row(_RISK_COLS, [p.label, f"{p.probability}%", p.risk_level.upper(), p.top_factor],
                            i, sev_col=2, sev=p.risk_level)
        for rec in risk.recommendations:
            self._bullet(f"{rec.priority} {rec.title}: {rec.action}")
