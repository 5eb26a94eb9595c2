"""
Gestionnaires d'exceptions.
- CheckoutError (taxonomie du flux paiement) -> JSON {error, code} avec le status associé.
- HTTPException: réponse JSON standard FastAPI ({detail}).
- Toute autre exception: 500 générique, détail interne uniquement dans les logs.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from storefront.payments.errors import CheckoutError, UnexpectedFailure

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CheckoutError)
    async def checkout_error_handler(request: Request, exc: CheckoutError):
        if exc.status_code >= 500:
            logger.error("checkout error path=%s code=%s", request.url.path, exc.code.value)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Erreur non gérée path=%s", request.url.path)
        return JSONResponse(status_code=500, content=UnexpectedFailure().to_dict())
