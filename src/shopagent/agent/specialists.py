"""Default storefront specialists.

Four agents cover the shop: payments (stripe), content (sanity), the order
database and marketing.  Each is a routing profile plus a configured
:class:`StandardPromptBuilder`; tools come from configuration.
"""

from __future__ import annotations

import re

from .prompts import StandardPromptBuilder
from .router import AgentProfile

PAYMENTS = AgentProfile(
    name="stripe",
    specialization=("payments", "financial", "revenue", "billing", "subscriptions", "analytics"),
    priority=1,
    patterns=(
        re.compile(r"payment|charge|billing|revenue|subscription|customer.*pay", re.IGNORECASE),
        re.compile(r"checkout|purchase|buy|sell|transaction", re.IGNORECASE),
        re.compile(r"financial.*analysis|profit|income|pricing", re.IGNORECASE),
    ),
    description="Payment, financial and revenue operations",
)

CONTENT = AgentProfile(
    name="sanity",
    specialization=("content", "cms", "products", "catalog", "publishing", "media"),
    priority=2,
    patterns=(
        re.compile(r"content|cms|product.*(?:create|update|manage)", re.IGNORECASE),
        re.compile(r"publish|edit|media|images|description", re.IGNORECASE),
        re.compile(r"catalog|inventory|product.*information", re.IGNORECASE),
    ),
    description="Content management and product catalog",
)

DATA = AgentProfile(
    name="database",
    specialization=("database", "data", "analytics", "orders", "users", "performance"),
    priority=3,
    patterns=(
        re.compile(r"data|database|analytics|performance|query", re.IGNORECASE),
        re.compile(r"orders|users|customers.*data|statistics", re.IGNORECASE),
        re.compile(r"backup|migration|optimization", re.IGNORECASE),
    ),
    description="Order data, users and database health",
)

MARKETING = AgentProfile(
    name="marketing",
    specialization=("marketing", "campaigns", "seo", "competitors", "personas"),
    priority=4,
    description="Campaigns, SEO, competitors and customer personas",
)

DEFAULT_PROFILES: dict[str, AgentProfile] = {p.name: p for p in (PAYMENTS, CONTENT, DATA, MARKETING)}

SPECIALIZATIONS = {
    "stripe": "payment processing, subscriptions and revenue analytics",
    "sanity": "content management, product catalog and publishing",
    "database": "order data, user records and database performance",
    "marketing": "marketing campaigns, SEO and competitive analysis",
}

_GUIDANCE = {
    "stripe": """\
PAYMENT GUIDELINES:
- Amounts are in the smallest currency unit (cents); never round silently.
- Refunds, cancellations and price changes are irreversible: state the impact first.
- Prefer read-only reporting tools when the request is ambiguous.""",
    "sanity": """\
CONTENT GUIDELINES:
- Keep product slugs stable; changing them breaks storefront links.
- Draft before publishing unless the request explicitly says to publish.
- Preserve existing SEO fields when updating a document.""",
    "database": """\
DATA GUIDELINES:
- Never run migrations or destructive queries without a recent backup.
- Summarize large result sets instead of returning raw rows.
- Flag data integrity issues you notice even if not asked.""",
    "marketing": """\
MARKETING GUIDELINES:
- Ground recommendations in the shop's actual catalog and order data.
- Name the target persona for every campaign idea.""",
}


def prompt_builder_for(name: str) -> StandardPromptBuilder:
    """Prompt builder for a known specialist, or the plain layout otherwise."""
    return StandardPromptBuilder(guidance=_GUIDANCE.get(name, ""))
