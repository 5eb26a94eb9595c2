"""
Registre central des routers.
- Paiements: /checkout, /webhook
- Admin: /admin/orders/*
- Health: /health
"""
from fastapi import FastAPI
from storefront.payments import views as payments_views
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l'application.
    - L'ordre n'a pas d'impact sauf conflits de chemins (évités par préfixes).
    """
    app.include_router(payments_views.router)
    app.include_router(payments_views.admin_router)
    app.include_router(health_router)
