"""
web/page.py
-----------
Renders one page view as a single HTML document. All view state lives in
the query string; every control links to an `/actions/...` route that
applies the matching view operation and redirects to the resulting page.
"""

from __future__ import annotations

import re
from datetime import datetime
from html import escape
from typing import Dict, List
from urllib.parse import urlencode

from core.dashboard import PageView
from models.selection import ChartResolution, Selection, SortState
from models.trend import TrendRow
from modules.trend_signals import trend_label, trend_tone
from utils.utils import format_timestamp

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width,initial-scale=1">
  <title>{{TITLE}}</title>
  <style>
    body { font-family: Inter, system-ui, sans-serif; background: #f1f5f9; color: #0f172a; margin: 0; }
    .container { max-width: 1200px; margin: 0 auto; padding: 32px 16px; }
    h1 span { color: #059669; }
    .grid { display: grid; grid-template-columns: 1fr 3fr; gap: 24px; }
    .grid.fullscreen { grid-template-columns: 1fr; }
    .card { background: #fff; border: 1px solid #e2e8f0; border-radius: 8px; padding: 16px; margin-bottom: 24px; }
    .tabs, .symbols { display: grid; grid-template-columns: repeat(3, 1fr); gap: 8px; }
    .btn { display: inline-block; padding: 6px 8px; border: 1px solid #cbd5e1; border-radius: 6px; text-align: center;
           font-size: 12px; color: inherit; text-decoration: none; background: #fff; }
    .btn.active { background: #ecfdf5; color: #047857; border-color: #a7f3d0; }
    .btn.placeholder { opacity: .5; pointer-events: none; }
    .chart { position: relative; width: 100%; height: 400px; }
    .chart img { width: 100%; height: 100%; object-fit: contain; border-radius: 6px; }
    .chart .overlay { position: absolute; top: 8px; left: 8px; background: rgba(255,255,255,.8); padding: 2px 8px;
                      border-radius: 4px; font-size: 14px; font-weight: 500; }
    .chart.skeleton { background: #e2e8f0; border-radius: 6px; }
    .chart.missing { display: flex; flex-direction: column; align-items: center; justify-content: center;
                     background: #f8fafc; color: #475569; border-radius: 6px; }
    .banner { text-align: center; background: #f8fafc; border: 1px solid #e2e8f0; border-radius: 6px; padding: 8px; }
    table { width: 100%; border-collapse: collapse; margin-top: 12px; }
    th, td { padding: 8px; border-bottom: 1px solid #e2e8f0; text-align: left; }
    th a { color: inherit; text-decoration: none; font-weight: 600; }
    .bullish { color: #16a34a; } .bearish { color: #dc2626; } .neutral { color: #6b7280; }
    .error { color: #dc2626; text-align: center; padding: 48px 0; }
    .muted { color: #64748b; }
    footer { border-top: 1px solid #e2e8f0; margin-top: 48px; padding-top: 24px; text-align: center; font-size: 14px; color: #475569; }
  </style>
</head>
<body>
<main class="container">
  <header><h1>{{HEADING}}</h1><p class="muted">Trading Chart Filter Analysis</p></header>
  <div class="{{GRID_CLASS}}">
    {{SIDEBAR}}
    <section class="card">
      <div style="display:flex;justify-content:space-between;align-items:center">
        <div><h2>{{SYMBOL}} Analysis</h2><p class="muted">{{TIMEFRAME}} timeframe</p></div>
        <div>{{CHART_ACTIONS}}</div>
      </div>
      {{CHART}}
    </section>
  </div>
  {{TRENDS}}
  <footer><p>{{TITLE}}</p><p>&copy; {{YEAR}} Trading1501. All rights reserved.</p></footer>
</main>
</body>
</html>
"""

_MARKER = re.compile(r"\{\{[A-Z_]+\}\}")


def page_query(selection: Selection, sort: SortState) -> Dict[str, str]:
    query: Dict[str, str] = dict(selection.to_query())
    query["sort"] = sort.field
    query["direction"] = sort.direction
    return query


def page_href(selection: Selection, sort: SortState) -> str:
    return "/?" + urlencode(page_query(selection, sort))


def action_href(view: PageView, action: str, **params: str) -> str:
    """Link to an action route; the current page state rides along in the query."""
    query = page_query(view.selection, view.sort)
    query.update(params)
    return f"/actions/{action}?" + urlencode(query)


# ------------------------------------------------------------------------ #
def render_timeframe_tabs(view: PageView) -> str:
    tabs = []
    for tf in view.timeframes:
        cls = "btn active" if tf == view.selection.timeframe else "btn"
        href = escape(action_href(view, "timeframe", value=tf))
        tabs.append(f'<a class="{cls}" href="{href}">{escape(tf)}</a>')
    return f'<div class="tabs">{"".join(tabs)}</div>'


def render_symbol_selector(view: PageView) -> str:
    catalog = view.catalog
    if catalog.loading:
        buttons = ['<span class="btn placeholder" aria-disabled="true">...</span>'] * catalog.placeholder_count()
        return f'<div class="symbols">{"".join(buttons)}</div>'

    buttons = []
    for sym in catalog.symbols:
        cls = "btn active" if sym.symbol == view.selection.symbol else "btn"
        href = escape(action_href(view, "symbol", value=sym.symbol))
        buttons.append(
            f'<a class="{cls}" href="{href}" title="{escape(sym.name)}">{escape(sym.symbol)}</a>'
        )
    return f'<div class="symbols">{"".join(buttons)}</div>'


def render_sidebar(view: PageView) -> str:
    if view.selection.fullscreen:
        return ""
    return (
        '<aside class="card"><h2>Analysis Settings</h2>'
        '<h3>Timeframe</h3>'
        f"{render_timeframe_tabs(view)}"
        '<h3>Symbol</h3>'
        f"{render_symbol_selector(view)}"
        "</aside>"
    )


def render_chart_actions(view: PageView) -> str:
    actions = [
        f'<a class="btn" href="{escape(action_href(view, "refresh"))}" '
        'title="Refresh chart">&#x21bb; Refresh</a>'
    ]
    if view.fullscreen_enabled:
        label = "Exit full screen" if view.selection.fullscreen else "Full screen"
        actions.append(f'<a class="btn" href="{escape(action_href(view, "fullscreen"))}">{label}</a>')
    return " ".join(actions)


def render_chart(chart: ChartResolution) -> str:
    if chart.loading:
        return '<div class="chart skeleton" aria-busy="true"></div>'
    if chart.error:
        return (
            '<div class="chart missing">'
            f"<p>Unable to load chart for {escape(chart.symbol)} ({escape(chart.timeframe)})</p>"
            '<p class="muted">The chart image could not be loaded from the server.</p>'
            "</div>"
        )
    return (
        '<div class="chart">'
        f'<img src="{escape(chart.url)}" alt="{escape(chart.symbol)} {escape(chart.timeframe)} Chart">'
        f'<div class="overlay">{escape(chart.label)}</div>'
        "</div>"
    )


# ------------------------------------------------------------------------ #
def render_sort_icon(field: str, sort: SortState) -> str:
    if sort.field != field:
        return ""
    return " &#x2191;" if sort.direction == "asc" else " &#x2193;"


def render_trend_cell(view: PageView, row: TrendRow, timeframe: str) -> str:
    value = row.signal(timeframe)
    tone = trend_tone(value)
    href = escape(action_href(view, "view-chart", row=row.symbol, column=timeframe))
    return (
        f'<td><span class="{tone}"><strong>{value}</strong> ({trend_label(value)})</span> '
        f'<a class="btn {tone}" href="{href}" '
        f'title="View {escape(row.symbol)} {escape(timeframe)} chart">&#x1f4ca;</a></td>'
    )


def render_trend_table(view: PageView) -> str:
    table = view.table
    if table.loading:
        body = '<p class="muted" style="text-align:center">Loading trend analysis...</p>'
    elif table.error:
        body = f'<div class="error">{escape(table.error)}</div>'
    else:
        headers: List[str] = []
        for field in ["symbol"] + view.timeframes:
            href = escape(action_href(view, "sort", field=field))
            label = "Symbol" if field == "symbol" else field
            headers.append(f'<th><a href="{href}">{label}{render_sort_icon(field, view.sort)}</a></th>')
        rows = []
        for row in table.visible_rows():
            cells = "".join(render_trend_cell(view, row, tf) for tf in view.timeframes)
            rows.append(f"<tr><td><strong>{escape(row.symbol)}</strong></td>{cells}</tr>")
        body = (
            f'<div class="banner">&#x1f552; <strong>Last Updated: '
            f"{escape(format_timestamp(table.latest_updated, view.display_timezone))}</strong></div>"
            f'<table><thead><tr>{"".join(headers)}</tr></thead>'
            f'<tbody>{"".join(rows)}</tbody></table>'
        )
    return f'<section class="card"><h2>Trend Analysis</h2>{body}</section>'


# ------------------------------------------------------------------------ #
def render_page(view: PageView, *, now: datetime) -> str:
    selection = view.selection
    chart = view.chart or ChartResolution(symbol=selection.symbol, timeframe=selection.timeframe)

    title = view.title
    head, _, tail = title.partition(" ")
    heading = f"{escape(head)} <span>{escape(tail)}</span>" if tail else escape(title)

    replacements = {
        "{{TITLE}}": escape(title),
        "{{HEADING}}": heading,
        "{{GRID_CLASS}}": "grid fullscreen" if selection.fullscreen else "grid",
        "{{SIDEBAR}}": render_sidebar(view),
        "{{SYMBOL}}": escape(selection.symbol),
        "{{TIMEFRAME}}": escape(selection.timeframe),
        "{{CHART_ACTIONS}}": render_chart_actions(view),
        "{{CHART}}": render_chart(chart),
        "{{TRENDS}}": "" if selection.fullscreen else render_trend_table(view),
        "{{YEAR}}": str(now.year),
    }
    return _MARKER.sub(lambda m: replacements[m.group(0)], PAGE_TEMPLATE)
