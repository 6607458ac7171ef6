from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from PIL import Image, ImageDraw, ImageFont, ImageFilter
import os
import math

from ..dashboard import DashboardData

ERROR_GLYPH = "!"

def _hex(c: str) -> tuple[int, int, int]:
    c = c.lstrip("#")
    return tuple(int(c[i:i+2], 16) for i in (0, 2, 4))

def _load_font(theme: dict, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    font_path = theme.get("font_path")
    try:
        if font_path:
            return ImageFont.truetype(os.path.expanduser(font_path), size=size)
        family = theme.get("font_family", "DejaVuSansMono")
        return ImageFont.truetype(f"{family}.ttf", size=size)
    except OSError:
        return ImageFont.load_default()

def _sp_to_px(text_size: float, width: int) -> int:
    # Widget text sizes are Android-style sp; scale them with the canvas width
    return max(10, round(text_size * width / 1920))

@dataclass(frozen=True)
class Layout:
    width: int
    height: int
    columns: int
    gap: int
    margin: int
    cell_w: int
    cell_h: int
    rows: int

def _compute_layout(width: int, height: int, columns: int, n: int) -> Layout:
    margin = max(24, width // 80)
    gap = max(18, width // 120)
    cols = max(1, min(columns, n))
    rows = max(1, math.ceil(n / cols))
    cell_w = (width - 2 * margin - (cols - 1) * gap) // cols
    cell_h = (height - 2 * margin - (rows - 1) * gap) // rows
    return Layout(width, height, cols, gap, margin, cell_w, cell_h, rows)

def _wrap(draw: ImageDraw.ImageDraw, text: str, font, max_w: int) -> list[str]:
    lines: list[str] = []
    for paragraph in text.splitlines() or [""]:
        line = ""
        for word in paragraph.split(" "):
            candidate = f"{line} {word}" if line else word
            if line and draw.textlength(candidate, font=font) > max_w:
                lines.append(line)
                line = word
            else:
                line = candidate
        lines.append(line)
    return lines

def _scanlines(img: Image.Image, strength: int = 18) -> Image.Image:
    w, h = img.size
    overlay = Image.new("RGBA", (w, h), (0, 0, 0, 0))
    d = ImageDraw.Draw(overlay)
    for y in range(0, h, 4):
        d.rectangle([0, y, w, y+1], fill=(0, 0, 0, strength))
    return Image.alpha_composite(img.convert("RGBA"), overlay)

def _draw_glow_text(img: Image.Image, draw: ImageDraw.ImageDraw, xy: tuple[int, int], text: str, font, fill_rgb, glow_rgb, glow_radius: int = 8):
    x, y = xy
    tw, th = draw.textbbox((0, 0), text, font=font)[2:]
    pad = glow_radius * 2
    tmp = Image.new("RGBA", (tw + pad*2, th + pad*2), (0, 0, 0, 0))
    td = ImageDraw.Draw(tmp)
    td.text((pad, pad), text, font=font, fill=(*glow_rgb, 120))
    tmp = tmp.filter(ImageFilter.GaussianBlur(radius=glow_radius))
    img.paste(tmp, (x - pad, y - pad), tmp)
    draw.text((x, y), text, font=font, fill=fill_rgb)

def render(
    out_path: Path,
    dash: DashboardData,
    resolution: tuple[int, int],
    columns: int,
    theme: dict,
) -> Path:
    w, h = resolution
    bg = _hex(theme.get("background", "#020402"))
    fg = _hex(theme.get("foreground", "#00ff66"))
    fg_dim = _hex(theme.get("foreground_dim", "#00aa44"))
    border = _hex(theme.get("panel_border", "#00aa44"))
    alert = _hex(theme.get("alert", "#ff3355"))

    img = Image.new("RGBA", (w, h), (*bg, 255))
    draw = ImageDraw.Draw(img)

    n = max(1, len(dash.results))
    layout = _compute_layout(w, h, columns, n)

    font_h = _load_font(theme, size=max(20, w // 90))

    for i, res in enumerate(dash.results):
        r = i // layout.columns
        c = i % layout.columns
        x0 = layout.margin + c * (layout.cell_w + layout.gap)
        y0 = layout.margin + r * (layout.cell_h + layout.gap)
        x1 = x0 + layout.cell_w
        y1 = y0 + layout.cell_h

        draw.rounded_rectangle([x0, y0, x1, y1], radius=18, outline=border if res.ok else alert, width=2)

        _draw_glow_text(img, draw, (x0 + 16, y0 + 12), res.title, font_h, fg, fg, glow_radius=6)
        if not res.ok:
            gw = int(draw.textlength(ERROR_GLYPH, font=font_h))
            _draw_glow_text(img, draw, (x1 - 16 - gw, y0 + 12), ERROR_GLYPH, font_h, alert, alert, glow_radius=6)

        font_b = _load_font(theme, size=_sp_to_px(res.text_size, w))
        line_h = int(font_b.size * 1.25) if hasattr(font_b, "size") else 16
        y = y0 + 58
        # Stale text is drawn dimmed
        color = fg_dim if res.stale else fg
        for ln in _wrap(draw, res.text, font_b, layout.cell_w - 32):
            if y + line_h > y1 - 8:
                break
            draw.text((x0 + 16, y), ln, font=font_b, fill=color)
            y += line_h

    img = _scanlines(img, strength=18)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    img.convert("RGB").save(out_path, format="PNG")
    return out_path
