"""
Badge renderer for curve exit classifications.

Draws an 800x650 JPEG with Pillow and returns it as a
``data:image/jpeg;base64,...`` URL.  The output depends only on the
:class:`BadgeInput`, so the same classification always renders the same
bytes and can be cached alongside the result.
"""

from __future__ import annotations

import base64
import io
import logging
from datetime import datetime, timezone

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from .models import BadgeInput

logger = logging.getLogger(__name__)

WIDTH = 800
HEIGHT = 650

COLOR_SCHEMES: dict[str, dict[str, str]] = {
    "red": {
        "primary": "#DC2626",
        "grad_start": "#7F1D1D",
        "grad_end": "#DC2626",
        "accent": "#FCA5A5",
        "bg": "#1A0A0A",
    },
    "gold": {
        "primary": "#F59E0B",
        "grad_start": "#78350F",
        "grad_end": "#F59E0B",
        "accent": "#FDE68A",
        "bg": "#1A1400",
    },
    "platinum": {
        "primary": "#94A3B8",
        "grad_start": "#334155",
        "grad_end": "#94A3B8",
        "accent": "#CBD5E1",
        "bg": "#0F172A",
    },
}

CONFIDENCE_COLORS: dict[str, str] = {
    "HIGH": "#22C55E",
    "MEDIUM": "#F59E0B",
    "LOW": "#EF4444",
}

_LABEL_COLOR = "#6B7280"
_VALUE_COLOR = "#D1D5DB"
_FOOTER_COLOR = "#374151"
_FOOTER_TEXT = "Verified on-chain · Bonding Curve Exit Badge v2"


def render_badge(badge: BadgeInput) -> str:
    """Render *badge* and return it as a base64 JPEG data URL."""
    scheme = COLOR_SCHEMES[badge.badge_color]
    img = Image.new("RGB", (WIDTH, HEIGHT), scheme["bg"])

    _draw_glow_border(img, scheme["primary"])
    draw = ImageDraw.Draw(img)

    # Medal
    cx, medal_y, medal_r = WIDTH // 2, 140, 70
    _draw_medal(draw, cx, medal_y, medal_r, scheme)
    draw.text(
        (cx, medal_y), badge.exit_type[:1].upper(),
        font=_font(48), fill=scheme["accent"], anchor="mm",
    )

    draw.text((cx, 230), badge.token_symbol, font=_font(24), fill=scheme["accent"], anchor="ma")
    draw.text((cx, 270), badge.badge_title, font=_font(26), fill=scheme["primary"], anchor="ma")
    draw.text((cx, 305), badge.exit_venue, font=_font(14), fill=scheme["accent"], anchor="ma")

    _draw_confidence_pill(img, cx, 335, badge.confidence)
    draw = ImageDraw.Draw(img)

    # Divider
    draw.line([(100, 375), (WIDTH - 100, 375)], fill=_blend(scheme["primary"], scheme["bg"], 0.3))

    rows = (
        ("WALLET", truncate_address(badge.wallet)),
        ("TOKEN", truncate_address(badge.token)),
        ("EXIT DATE", format_date(badge.sell_timestamp)),
    )
    for i, (label, value) in enumerate(rows):
        y = 395 + i * 30
        draw.text((100, y), label, font=_font(12), fill=_LABEL_COLOR)
        draw.text((230, y), value, font=_font(12), fill=_VALUE_COLOR)

    draw.text((cx, 510), f'"{badge.exit_type}"', font=_font(14), fill=scheme["primary"], anchor="ma")
    draw.text((cx, 600), _FOOTER_TEXT, font=_font(10), fill=_FOOTER_COLOR, anchor="ma")

    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=90)
    encoded = base64.b64encode(buf.getvalue()).decode("ascii")
    logger.debug("Rendered %s badge (%d bytes)", badge.badge_color, buf.tell())
    return f"data:image/jpeg;base64,{encoded}"


def truncate_address(addr: str) -> str:
    if len(addr) <= 16:
        return addr
    return f"{addr[:6]}...{addr[-4:]}"


def format_date(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d")


# ── Drawing helpers ───────────────────────────────────────────────────────

def _font(size: int) -> ImageFont.FreeTypeFont:
    return ImageFont.load_default(size=size)


def _draw_glow_border(img: Image.Image, color: str) -> None:
    box = (20, 20, WIDTH - 20, HEIGHT - 20)
    glow = Image.new("RGBA", img.size, (0, 0, 0, 0))
    ImageDraw.Draw(glow).rounded_rectangle(box, radius=16, outline=color, width=8)
    glow = glow.filter(ImageFilter.GaussianBlur(10))
    img.paste(glow, (0, 0), glow)
    ImageDraw.Draw(img).rounded_rectangle(box, radius=16, outline=color, width=3)


def _draw_medal(draw: ImageDraw.ImageDraw, cx: int, cy: int, r: int, scheme: dict[str, str]) -> None:
    # Radial gradient: grad_end at the centre fading to grad_start at the rim
    for step in range(r, 0, -1):
        t = step / r
        fill = _blend(scheme["grad_start"], scheme["grad_end"], t)
        draw.ellipse((cx - step, cy - step, cx + step, cy + step), fill=fill)
    draw.ellipse((cx - r, cy - r, cx + r, cy + r), outline=scheme["accent"], width=2)


def _draw_confidence_pill(img: Image.Image, cx: int, y: int, confidence: str) -> None:
    color = CONFIDENCE_COLORS[confidence]
    text = f"{confidence} CONFIDENCE"
    font = _font(12)
    width = int(font.getlength(text)) + 20
    box = (cx - width // 2, y, cx + width // 2, y + 22)

    overlay = Image.new("RGBA", img.size, (0, 0, 0, 0))
    od = ImageDraw.Draw(overlay)
    od.rounded_rectangle(box, radius=11, fill=_hex_rgb(color) + (51,))
    img.paste(overlay, (0, 0), overlay)

    draw = ImageDraw.Draw(img)
    draw.rounded_rectangle(box, radius=11, outline=color, width=1)
    draw.text((cx, y + 11), text, font=font, fill=color, anchor="mm")


def _hex_rgb(color: str) -> tuple[int, int, int]:
    color = color.lstrip("#")
    return int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16)


def _blend(a: str, b: str, t: float) -> tuple[int, int, int]:
    """Linear mix: ``t=0`` gives *b*, ``t=1`` gives *a*."""
    ra, ga, ba = _hex_rgb(a)
    rb, gb, bb = _hex_rgb(b)
    return (
        round(rb + (ra - rb) * t),
        round(gb + (ga - gb) * t),
        round(bb + (ba - bb) * t),
    )
