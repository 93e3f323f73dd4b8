from app.services.articles import ArticleService
from app.services.assist import AssistService
from app.services.tickets import TicketService

__all__ = [
    "ArticleService",
    "AssistService",
    "TicketService",
]
