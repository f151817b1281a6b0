"""
SEO knowledge base for the dealer chat assistant

Each topic is matched on keywords in the user's message; the first topic
with a hit wins. Package quotas are rendered from the package catalog.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from app.services.package_catalog import SEO_PACKAGES


@dataclass(frozen=True)
class Topic:
    name: str
    keywords: Tuple[str, ...]
    answer: str


TOPICS = (
    Topic(
        "timeline",
        ("how long", "timeline", "when will", "results", "take to"),
        "SEO is a long-term investment. Smaller improvements can show within 30-60 days, "
        "most dealers see stronger ranking and traffic growth within 3-6 months, and momentum "
        "usually peaks after 6 months of consistent publishing.",
    ),
    Topic(
        "kpis",
        ("kpi", "metric", "performance", "measure", "report"),
        "We track keyword rankings, organic traffic in GA4 (sessions, engagement rate, key events), "
        "search visibility in Search Console (impressions, clicks, CTR) and conversions such as "
        "click-to-call, form submissions and VDP/SRP interactions.",
    ),
    Topic(
        "traffic",
        ("traffic", "sessions", "down", "drop", "decline"),
        "Organic traffic moves for reasons beyond SEO. When it dips we review rankings, indexing, "
        "competitor activity, paid media overlap and GBP clicks GA4 files under Direct. Rising "
        "impressions with fewer clicks can still mean better visibility in zero-click and AI results.",
    ),
    Topic(
        "technical",
        ("metadata", "schema", "meta title", "technical"),
        "We optimize core navigation pages (new and used SRPs, VDPs, home page) with custom "
        "metadata that includes your target cities, plus Vehicle, FAQ and AutoDealer schema.",
    ),
    Topic(
        "content",
        ("content", "blog", "page", "gbp", "google business"),
        "We build interconnected content: model overview, trim level and comparison pages, "
        "localized serving-city pages, blogs on buying trends and OEM events, and Google Business "
        "Profile posts that link back to pages and inventory.",
    ),
    Topic(
        "website",
        ("website provider", "switch website", "new website", "migrate", "migration"),
        "If you change website providers we migrate your SEO content at no charge: rebuilding pages "
        "and blogs on the new CMS, submitting the sitemap, setting up 301 redirects and checking "
        "for broken links and indexing issues.",
    ),
    Topic(
        "ranking",
        ("rank", "ranking", "position"),
        "Pages rank when technical SEO, content quality and user intent line up: optimized metadata "
        "and schema, clean heading structure, helpful local content and strong internal links to "
        "inventory.",
    ),
    Topic(
        "ai",
        ("ai overview", "generative", "geo", "chatgpt"),
        "Content that AI Overviews favor is structured and helpful, so we add FAQs, comparison tables "
        "and clear sections, target informational queries and keep schema and page structure clean.",
    ),
)

HELP_ANSWER = (
    "I can help with your SEO package and what it includes, timelines for results, the KPIs we "
    "track, content strategy, technical optimizations and traffic questions."
)

FALLBACK_ANSWER = (
    "I don't have a ready answer for that one. Try asking about your package, timelines, "
    "performance metrics or content strategy, or escalate the question to your SEO team."
)


def package_summary() -> str:
    lines = [
        f"{p.name}: {p.pages} pages, {p.blogs} blogs, {p.gbp_posts} GBP posts, "
        f"{p.improvements} SEO improvements ({p.total_tasks} deliverables per month)"
        for p in SEO_PACKAGES.values()
    ]
    return "Here's what each SEO package includes every month:\n\n" + "\n".join(lines)


def find_answer(message: str) -> Optional[str]:
    """Best knowledge-base answer for ``message``, or None when nothing matches."""
    text = message.lower()
    if "package" in text or any(p.name.lower() in text for p in SEO_PACKAGES.values()):
        return package_summary()
    for topic in TOPICS:
        if any(keyword in text for keyword in topic.keywords):
            return topic.answer
    if "help" in text or "what can you do" in text:
        return HELP_ANSWER
    return None
