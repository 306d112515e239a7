"""Public SEO routes: sitemap.xml and robots.txt for the marketing site."""

from datetime import date
from xml.sax.saxutils import escape

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse, Response

from ...config import get_settings

router = APIRouter(tags=["seo"])

# (path, priority, change frequency)
STATIC_PAGES = (
    ("", "1.0", "weekly"),
    ("/about", "0.8", "monthly"),
    ("/services", "0.9", "monthly"),
    ("/contact", "0.7", "monthly"),
    ("/booking", "0.8", "weekly"),
    ("/privacy-policy", "0.3", "yearly"),
    ("/terms-of-service", "0.3", "yearly"),
    ("/cookie-policy", "0.3", "yearly"),
)

DISALLOWED_PATHS = ("/admin", "/dashboard", "/api")


def build_sitemap(base_url: str, lastmod: date) -> str:
    base_url = base_url.rstrip("/")
    entries = "".join(
        "  <url>\n"
        f"    <loc>{escape(base_url + path)}</loc>\n"
        f"    <lastmod>{lastmod.isoformat()}</lastmod>\n"
        f"    <changefreq>{changefreq}</changefreq>\n"
        f"    <priority>{priority}</priority>\n"
        "  </url>\n"
        for path, priority, changefreq in STATIC_PAGES
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        f"{entries}"
        "</urlset>\n"
    )


def build_robots(base_url: str) -> str:
    lines = ["User-agent: *", "Allow: /"]
    lines += [f"Disallow: {path}" for path in DISALLOWED_PATHS]
    lines += ["", f"Sitemap: {base_url.rstrip('/')}/sitemap.xml", ""]
    return "\n".join(lines)


@router.get("/sitemap.xml", include_in_schema=False)
async def sitemap():
    return Response(
        content=build_sitemap(get_settings().site_url, date.today()),
        media_type="application/xml",
        headers={"Cache-Control": "public, max-age=3600"},
    )


@router.get("/robots.txt", include_in_schema=False)
async def robots():
    return PlainTextResponse(
        build_robots(get_settings().site_url),
        headers={"Cache-Control": "public, max-age=86400"},
    )
