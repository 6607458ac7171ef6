from __future__ import annotations

from pathlib import Path
import json
from playwright.sync_api import sync_playwright

from ..dashboard import DashboardData

HTML_TEMPLATE = """<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Entityboard</title>
  <style>
    :root {{
      --bg: {bg};
      --fg: {fg};
      --fg-dim: {fg_dim};
      --border: {border};
      --alert: {alert};
      --gap: {gap}px;
      --pad: {pad}px;
      --radius: {radius}px;
      --cols: {cols};
      --font: ui-monospace, Menlo, Monaco, "DejaVu Sans Mono", "Liberation Mono", monospace;
    }}
    html, body {{
      margin: 0;
      width: {w}px;
      height: {h}px;
      background: var(--bg);
      color: var(--fg);
      font-family: var(--font);
      overflow: hidden;
    }}
    .grid {{
      display: grid;
      grid-template-columns: repeat(var(--cols), 1fr);
      gap: var(--gap);
      padding: var(--pad);
      box-sizing: border-box;
      width: 100%;
      height: 100%;
    }}
    .card {{
      border: 2px solid var(--border);
      border-radius: var(--radius);
      padding: 16px;
      box-sizing: border-box;
      position: relative;
      overflow: hidden;
    }}
    .card.bad {{
      border-color: var(--alert);
    }}
    .title {{
      font-size: 22px;
      margin: 0 0 10px 0;
      color: var(--fg);
      text-shadow: 0 0 10px rgba(0, 255, 102, 0.35);
    }}
    .glyph {{
      position: absolute;
      top: 14px;
      right: 18px;
      font-size: 22px;
      color: var(--alert);
      text-shadow: 0 0 10px rgba(255, 51, 85, 0.35);
    }}
    .text {{
      color: var(--fg);
      line-height: 1.25;
      white-space: pre-wrap;
      overflow-wrap: anywhere;
    }}
    .card.stale .text {{
      color: var(--fg-dim);
    }}
    .scanlines::before {{
      content: "";
      pointer-events: none;
      position: fixed;
      inset: 0;
      background: repeating-linear-gradient(
        to bottom,
        rgba(0,0,0,0.10),
        rgba(0,0,0,0.10) 1px,
        rgba(0,0,0,0.00) 4px
      );
      mix-blend-mode: multiply;
    }}
  </style>
</head>
<body class="scanlines">
  <div class="grid" id="grid"></div>

  <script>
    const data = {data_json};
    const scale = {w} / 1920;

    const grid = document.getElementById("grid");
    for (const w of data.results) {{
      const card = document.createElement("div");
      card.className = "card" + (w.ok ? "" : " bad") + (w.stale ? " stale" : "");

      const title = document.createElement("div");
      title.className = "title";
      title.textContent = w.title;
      card.appendChild(title);

      if (!w.ok) {{
        const glyph = document.createElement("div");
        glyph.className = "glyph";
        glyph.textContent = "!";
        card.appendChild(glyph);
      }}

      const text = document.createElement("div");
      text.className = "text";
      text.style.fontSize = `${{Math.max(10, Math.round(w.text_size * scale))}}px`;
      text.textContent = w.text;
      card.appendChild(text);

      grid.appendChild(card);
    }}
  </script>
</body>
</html>
"""

def build_html(
    dash: DashboardData,
    resolution: tuple[int, int],
    columns: int,
    theme: dict,
) -> str:
    w, h = resolution
    pad = max(24, w // 80)
    gap = max(18, w // 120)
    radius = 22

    payload = {
        "results": [
            {
                "id": r.instance_id,
                "title": r.title,
                "text": r.text,
                "text_size": r.text_size,
                "ok": r.ok,
                "stale": r.stale,
            }
            for r in dash.results
        ]
    }

    return HTML_TEMPLATE.format(
        w=w, h=h,
        cols=max(1, columns),
        pad=pad, gap=gap, radius=radius,
        bg=theme.get("background", "#020402"),
        fg=theme.get("foreground", "#00ff66"),
        fg_dim=theme.get("foreground_dim", "#00aa44"),
        border=theme.get("panel_border", "#00aa44"),
        alert=theme.get("alert", "#ff3355"),
        # "</" would close the script element early
        data_json=json.dumps(payload).replace("</", "<\\/"),
    )

def render(
    out_path: Path,
    dash: DashboardData,
    resolution: tuple[int, int],
    columns: int,
    theme: dict,
    web_cfg: dict,
) -> Path:
    w, h = resolution
    html = build_html(dash, resolution, columns, theme)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_html = out_path.with_suffix(".html")
    tmp_html.write_text(html, encoding="utf-8")

    scale = float(web_cfg.get("viewport_device_scale_factor", 1))
    headless = bool(web_cfg.get("headless", True))
    browser_name = str(web_cfg.get("browser", "chromium"))

    with sync_playwright() as p:
        browser = getattr(p, browser_name).launch(headless=headless)
        page = browser.new_page(viewport={"width": w, "height": h}, device_scale_factor=scale)
        page.goto(tmp_html.as_uri())
        page.wait_for_timeout(250)
        page.screenshot(path=str(out_path), full_page=False)
        browser.close()

    return out_path
