from fastapi import APIRouter

from app.api.v1.endpoints import articles, assist, categories, dashboard, health, macros, realtime, tickets, users

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(users.router)
api_router.include_router(categories.router)
api_router.include_router(articles.router)
api_router.include_router(tickets.router)
api_router.include_router(macros.router)
api_router.include_router(dashboard.router)
api_router.include_router(assist.router)
api_router.include_router(realtime.router)
