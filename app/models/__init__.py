from app.models.article import Article
from app.models.article_embedding import ArticleEmbedding
from app.models.category import Category
from app.models.chat import ChatMessage, ChatSession
from app.models.macro import Macro
from app.models.ticket import Ticket
from app.models.ticket_analytics import TicketAnalytics
from app.models.ticket_file import TicketFile
from app.models.ticket_message import TicketMessage
from app.models.user import User

__all__ = [
    "User",
    "Category",
    "Article",
    "ArticleEmbedding",
    "Ticket",
    "TicketMessage",
    "TicketFile",
    "ChatSession",
    "ChatMessage",
    "Macro",
    "TicketAnalytics",
]
