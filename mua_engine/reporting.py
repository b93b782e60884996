"""Report generation for measurement uncertainty analyses.

Produces plain-text and standalone HTML reports of an uncertainty budget,
its ratios and the guard-banded decision risk.
"""

from __future__ import annotations

import base64
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from mua_engine.analysis import BudgetResult


@dataclass
class ReportConfig:
    """Configuration for report generation.

    Attributes:
        title: Report title.
        project: Project or calibration procedure name.
        author: Author name.
        revision: Document revision.
        date: Report date (defaults to now).
        include_contributions: Include the percent-contribution table.
        include_risk: Include the guard band and risk section.
        image_width: Width for embedded images (pixels).
    """
    title: str = "Measurement Uncertainty Report"
    project: str = ""
    author: str = ""
    revision: str = "A"
    date: str = ""
    include_contributions: bool = True
    include_risk: bool = True
    image_width: int = 700


def generate_html_report(
    config: ReportConfig,
    results: dict[str, BudgetResult],
    analysis_info: Optional[dict] = None,
    plot_images: Optional[dict[str, bytes]] = None,
) -> str:
    """Generate an HTML uncertainty report.

    Args:
        config: Report configuration.
        results: Dict of measurement point label -> BudgetResult.
        analysis_info: Optional dict describing the analysis
            (``MeasurementAnalysis.to_dict()``).
        plot_images: Optional dict of name -> PNG bytes for embedding.

    Returns:
        HTML string.
    """
    date_str = config.date or datetime.now().strftime("%Y-%m-%d %H:%M")

    html = [_html_header(config)]

    html.append(f"""
    <div class="cover">
        <h1>{_esc(config.title)}</h1>
        <table class="info-table">
            <tr><td><b>Project:</b></td><td>{_esc(config.project)}</td></tr>
            <tr><td><b>Author:</b></td><td>{_esc(config.author)}</td></tr>
            <tr><td><b>Revision:</b></td><td>{_esc(config.revision)}</td></tr>
            <tr><td><b>Date:</b></td><td>{_esc(date_str)}</td></tr>
        </table>
    </div>
    """)

    if analysis_info:
        html.append('<div class="section"><h2>Measurement Definition</h2>')
        if "name" in analysis_info:
            html.append(f'<p><b>Analysis:</b> {_esc(str(analysis_info["name"]))}</p>')
        if analysis_info.get("description"):
            html.append(f'<p>{_esc(str(analysis_info["description"]))}</p>')
        nominal = analysis_info.get("nominal")
        if nominal:
            html.append(f'<p><b>Nominal:</b> {_esc(_num(nominal.get("value"), "g"))} '
                        f'{_esc(str(nominal.get("unit", "")))}</p>')
        html.append('<table class="data-table">')
        html.append('<tr><th>Instrument</th><th>Distribution</th><th>Bound (&plusmn;)</th>'
                    '<th>Unit</th><th>k</th></tr>')
        for label, key in (("UUT", "uut"), ("TMDE", "tmde")):
            spec = analysis_info.get(key)
            if not spec:
                continue
            k = _num(spec.get("coverage_factor"), "g") if spec.get("distribution") == "normal" else ""
            html.append(f'<tr><td>{label}</td>'
                        f'<td>{_esc(str(spec.get("distribution", "")))}</td>'
                        f'<td>{_esc(_num(spec.get("bound"), "g"))}</td>'
                        f'<td>{_esc(str(spec.get("unit", "")))}</td>'
                        f'<td>{_esc(k)}</td></tr>')
        html.append('</table></div>')

    for label, result in results.items():
        html.append(f'<div class="section"><h2>{_esc(label)}</h2>')

        html.append('<h3>Uncertainty Budget</h3><table class="data-table">')
        html.append('<tr><th>Component</th><th>Type</th><th>u<sub>i</sub> (ppm)</th>'
                    '<th>v<sub>i</sub></th></tr>')
        for c in result.components:
            html.append(f'<tr><td>{_esc(c.name)}</td><td>{c.kind.value}</td>'
                        f'<td>{c.standard_uncertainty_ppm:.4f}</td>'
                        f'<td>{_num(c.degrees_of_freedom, "g")}</td></tr>')
        html.append(f'<tr class="total"><td colspan="2">Combined standard uncertainty (u<sub>c</sub>)</td>'
                    f'<td>{_num(result.uc, ".4f")}</td><td></td></tr>')
        html.append(f'<tr class="total"><td colspan="2">Effective degrees of freedom</td>'
                    f'<td>{_num(result.veff, ".2f")}</td><td></td></tr>')
        html.append(f'<tr class="total"><td colspan="2">Coverage factor (k)</td>'
                    f'<td>{_num(result.k, ".3f")}</td><td></td></tr>')
        html.append('</table>')
        html.append(f'<p class="headline">U = &plusmn; {_num(result.expanded_uncertainty, ".3f")} ppm</p>')

        if config.include_contributions and result.components:
            html.append('<h3>Percent Contribution</h3><table class="data-table">')
            html.append('<tr><th>Component</th><th>% of u<sub>c</sub>&sup2;</th></tr>')
            for name, pct in result.contributions:
                html.append(f'<tr><td>{_esc(name)}</td><td>{pct:.2f}</td></tr>')
            html.append('</table>')

        html.append('<h3>Ratios</h3><table class="data-table">')
        html.append(f'<tr><td>Test Uncertainty Ratio (TUR)</td><td>{_num(result.tur, ".2f")} : 1</td></tr>')
        html.append(f'<tr><td>Test Acceptance Ratio (TAR)</td><td>{_num(result.tar, ".2f")} : 1</td></tr>')
        html.append('</table>')

        if config.include_risk:
            html.append('<h3>Guard Band &amp; Decision Risk</h3><table class="data-table">')
            html.append(f'<tr><td>Target consumer risk</td><td>{_num(result.target_consumer_risk, ".4g")}</td></tr>')
            html.append(f'<tr><td>Guard band (g = z&times;u<sub>c</sub>)</td>'
                        f'<td>{_num(result.guard_band, ".2f")} ppm</td></tr>')
            html.append(f'<tr><td>Acceptance limits</td><td>&plusmn; {_num(result.acceptance_limit, ".2f")} ppm</td></tr>')
            html.append(f'<tr><td>PFA (false accept)</td><td>{_pct(result.pfa)}</td></tr>')
            html.append(f'<tr><td>PFR (false reject)</td><td>{_pct(result.pfr)}</td></tr>')
            html.append('</table>')
            html.append('<p class="note">PFA and PFR are two-sided estimates for a '
                        'measurement centered on the acceptance limit.</p>')

        html.append('</div>')

    if plot_images:
        html.append('<div class="section"><h2>Charts</h2>')
        for name, img_bytes in plot_images.items():
            b64 = base64.b64encode(img_bytes).decode('ascii')
            html.append(f'<h3>{_esc(name)}</h3>')
            html.append(f'<img src="data:image/png;base64,{b64}" '
                        f'width="{config.image_width}" alt="{_esc(name)}">')
        html.append('</div>')

    html.append(_html_footer())
    return "\n".join(html)


def generate_text_report(
    config: ReportConfig,
    results: dict[str, BudgetResult],
) -> str:
    """Generate a plain-text uncertainty report."""
    lines = [
        "=" * 70,
        config.title.center(70),
        "=" * 70,
        f"Project:  {config.project}",
        f"Author:   {config.author}",
        f"Revision: {config.revision}",
        f"Date:     {config.date or datetime.now().strftime('%Y-%m-%d %H:%M')}",
        "=" * 70,
        "",
    ]

    for label, result in results.items():
        lines.append(f"--- {label} ---")
        lines.append(result.summary())
        if config.include_contributions and result.components:
            lines.append("  Percent contribution:")
            for name, pct in result.contributions:
                lines.append(f"    {name:30s}  {pct:6.2f}%")
        lines.append("")

    lines.append("=" * 70)
    lines.append("END OF REPORT")
    return "\n".join(lines)


def save_report(html: str, path: str) -> None:
    """Save a report to a file."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(html)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _num(value, spec: str) -> str:
    """Format a number, rendering unavailable values as a dash."""
    if value is None:
        return "&mdash;"
    if isinstance(value, str):
        return value
    if math.isnan(value):
        return "&mdash;"
    if math.isinf(value):
        return "&infin;"
    return format(value, spec)


def _pct(p: float) -> str:
    return "&mdash;" if math.isnan(p) else f"{p * 100.0:.2f}%"


def _esc(text: str) -> str:
    """Escape HTML special characters."""
    return (text
            .replace("&", "&amp;")
            .replace("<", "&lt;")
            .replace(">", "&gt;")
            .replace('"', "&quot;"))


def _html_header(config: ReportConfig) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{_esc(config.title)}</title>
<style>
    body {{
        font-family: 'Segoe UI', Arial, sans-serif;
        margin: 40px;
        color: #333;
        background: #fff;
        line-height: 1.6;
    }}
    h1 {{ color: #1565C0; border-bottom: 3px solid #1565C0; padding-bottom: 10px; }}
    h2 {{ color: #1976D2; border-bottom: 1px solid #ddd; padding-bottom: 5px; margin-top: 30px; }}
    h3 {{ color: #1E88E5; }}
    .cover {{ text-align: center; margin-bottom: 40px; padding: 30px;
              background: linear-gradient(135deg, #E3F2FD 0%, #BBDEFB 100%);
              border-radius: 8px; }}
    .info-table {{ margin: 15px auto; border-collapse: collapse; }}
    .info-table td {{ padding: 5px 15px; text-align: left; }}
    .section {{ margin: 20px 0; padding: 15px; }}
    .data-table {{ border-collapse: collapse; width: 100%; margin: 10px 0; }}
    .data-table th {{ background: #1976D2; color: white; padding: 8px 12px;
                      text-align: left; font-weight: 600; }}
    .data-table td {{ padding: 6px 12px; border-bottom: 1px solid #eee; }}
    .data-table tr:nth-child(even) {{ background: #FAFAFA; }}
    .data-table tr.total td {{ font-weight: 600; background: #E3F2FD; }}
    .headline {{ font-size: 20px; font-weight: bold; color: #0D47A1; }}
    .note {{ color: #777; font-size: 12px; }}
    img {{ max-width: 100%; border: 1px solid #ddd; border-radius: 4px;
           margin: 10px 0; }}
    @media print {{
        body {{ margin: 20px; }}
        .section {{ page-break-inside: avoid; }}
        .cover {{ background: #fff; border: 2px solid #1565C0; }}
    }}
</style>
</head>
<body>
"""


def _html_footer() -> str:
    return """
<div style="text-align:center; margin-top:40px; padding:15px; border-top:1px solid #ddd; color:#999; font-size:12px;">
    Generated by MUA Engine
</div>
</body>
</html>"""
