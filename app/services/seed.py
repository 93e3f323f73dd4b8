from __future__ import annotations

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import TicketPriority, TicketStatus, UserRole
from app.core.logging import configure_logging
from app.models import User
from app.repositories.article import ArticleRepository
from app.repositories.category import CategoryRepository
from app.repositories.macro import MacroRepository
from app.repositories.ticket import TicketRepository
from app.repositories.user import UserRepository
from app.services.ai.providers import AIProvider, get_ai_provider
from app.services.ai.similarity import SimilaritySearchService

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("admin@helpdesk.local", "Admin User", UserRole.AGENT, "admin_auth_id"),
    ("agent@helpdesk.local", "Support Agent", UserRole.AGENT, "agent_auth_id"),
    ("visitor@example.com", "Sample Visitor", UserRole.VISITOR, "visitor_auth_id"),
]

DEMO_CATEGORIES = {
    "Reservations": ("Booking, changing and cancelling reservations", "fa-calendar"),
    "Campgrounds": ("Sites, hookups and amenities", "fa-campground"),
    "Passes": ("Annual and day-use passes", "fa-ticket"),
}

DEMO_ARTICLES = [
    (
        "Reservations",
        "How to cancel a reservation",
        "## Cancelling\n\nOpen **My Reservations**, choose the booking and press *Cancel*. "
        "Cancellations made more than 7 days before arrival are refunded minus a processing fee.",
    ),
    (
        "Campgrounds",
        "Campsite electric and water hookups",
        "Most campgrounds offer sites with 30 and 50 amp electric hookups and water. "
        "Use the *Amenities* filter when searching to find sites with full hookups.",
    ),
    (
        "Passes",
        "Annual pass benefits",
        "The annual pass covers day-use entry for the pass holder's vehicle at every park "
        "for twelve months from the purchase date.",
    ),
]

DEMO_MACROS = [
    ("Greeting", "Hi there,\n\nThanks for reaching out! "),
    ("Refund processed", "Your refund has been processed and should appear within 5-7 business days."),
]


async def seed_database(session: AsyncSession, provider: AIProvider) -> bool:
    """Insert demo data into an empty database. Returns False when skipped."""
    existing = await session.scalar(select(User).limit(1))
    if existing is not None:
        logger.info("Database already seeded, skipping")
        return False

    users = UserRepository(session)
    seeded_users = {}
    for email, name, role, external_auth_id in DEMO_USERS:
        seeded_users[external_auth_id] = await users.create(
            email=email, name=name, role=role, external_auth_id=external_auth_id
        )
    admin = seeded_users["admin_auth_id"]
    agent = seeded_users["agent_auth_id"]
    visitor = seeded_users["visitor_auth_id"]

    categories = CategoryRepository(session)
    category_ids = {}
    for name, (description, icon) in DEMO_CATEGORIES.items():
        category = await categories.create(name=name, description=description, icon=icon)
        category_ids[name] = category.id

    articles = ArticleRepository(session)
    search = SimilaritySearchService(session, provider)
    for category_name, title, content in DEMO_ARTICLES:
        article = await articles.create(
            title=title,
            content=content,
            author_id=admin.id,
            category_id=category_ids[category_name],
            is_published=True,
        )
        await search.upsert_article_embedding(article.id, article.embedding_text)

    tickets = TicketRepository(session)
    ticket, _ = await tickets.create_ticket(
        requester_id=visitor.id,
        subject="Refund for cancelled booking",
        description="I cancelled my campsite booking last week but haven't received a refund yet.",
        priority=TicketPriority.HIGH,
        order_number="PP-100234",
    )
    await tickets.add_message(
        ticket,
        author_id=agent.id,
        content="Thanks for reaching out! Could you confirm the card you paid with?",
        new_status=TicketStatus.PENDING,
    )
    await tickets.assign(ticket, agent.id)

    macros = MacroRepository(session)
    for title, content in DEMO_MACROS:
        await macros.create(title=title, content=content, created_by_id=admin.id)

    await session.commit()
    logger.info("Seeded %s users, %s articles", len(DEMO_USERS), len(DEMO_ARTICLES))
    return True


async def run_seed() -> None:
    from app.db.session import SessionLocal

    configure_logging()
    provider = get_ai_provider()
    try:
        async with SessionLocal() as session:
            await seed_database(session, provider)
    finally:
        await provider.aclose()


if __name__ == "__main__":
    asyncio.run(run_seed())
