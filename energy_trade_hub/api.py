"""
API Interface for the Energy Trade Hub

RESTful API exposing the certificate lifecycle. The calling principal is
read from the ``X-Principal`` header; authenticating it is the job of the
wallet layer in front of this service.
"""

import logging
from enum import Enum
from typing import Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException

from .error_handling import (
    general_exception_handler,
    http_exception_handler,
    registry_exception_handler,
    validation_exception_handler,
)
from .exceptions import EnergyTradeHubError
from .logging_config import logger, set_logger_and_children_level
from .models import Role
from .reports import registry_statistics
from .settings import settings
from .trading import LifecycleEngine, build_engine


# Request/Response models
class CreateCertificateRequest(BaseModel):
    energy_amount: int
    price_per_unit: int = Field(0, ge=0)
    start_date: int
    end_date: int
    source_type: str
    delivery_point: str
    contract_terms_hash: str
    metadata_ref: str = ""


class ListingRequest(BaseModel):
    price: int


class PurchaseRequest(BaseModel):
    payment: int


class ProviderRequest(BaseModel):
    principal: str


class logging_levels(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingLevelRequest(BaseModel):
    level: logging_levels


def get_engine(request: Request) -> LifecycleEngine:
    return request.app.state.engine


def get_principal(x_principal: str = Header(..., min_length=1)) -> str:
    return x_principal


def create_app(engine: Optional[LifecycleEngine] = None) -> FastAPI:
    """Build the API around an engine, bootstrapping a fresh one if not given"""
    app = FastAPI(
        title="Energy Trade Hub API",
        description="Permissioned registry for tokenized energy-delivery certificates",
        version="1.0.0",
    )
    app.state.engine = engine or build_engine()

    origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
    origins.extend(settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Principal", "Accept", "Origin"],
    )

    app.add_exception_handler(EnergyTradeHubError, registry_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "Energy Trade Hub API",
            "version": "1.0.0",
            "endpoints": {
                "register_consumer": "POST /roles/consumer",
                "add_provider": "POST /roles/provider",
                "create": "POST /certificates",
                "list": "POST /certificates/{token_id}/listing",
                "withdraw": "DELETE /certificates/{token_id}/listing",
                "buy": "POST /certificates/{token_id}/purchase",
                "burn": "POST /certificates/{token_id}/burn",
                "marketplace": "GET /marketplace",
                "events": "GET /events",
                "statistics": "GET /statistics",
            },
        }

    @app.get("/health")
    async def health():
        return {"status": "ok", "environment": settings.ENVIRONMENT}

    # Roles

    @app.post("/roles/consumer", response_model=dict)
    def register_as_consumer(
        caller: str = Depends(get_principal),
        engine: LifecycleEngine = Depends(get_engine),
    ):
        """Register the calling principal as a Consumer"""
        granted = engine.register_as_consumer(caller)
        return {"success": True, "principal": caller, "granted": granted}

    @app.post("/roles/provider", response_model=dict)
    def add_provider(
        request: ProviderRequest,
        caller: str = Depends(get_principal),
        engine: LifecycleEngine = Depends(get_engine),
    ):
        """Grant the Provider role (Admin only)"""
        granted = engine.add_provider(request.principal, caller)
        return {"success": True, "principal": request.principal, "granted": granted}

    @app.get("/roles/{principal}", response_model=dict)
    def get_roles(principal: str, engine: LifecycleEngine = Depends(get_engine)):
        roles = engine.state.roles.roles_of(principal)
        return {"principal": principal, "roles": [role.value for role in roles]}

    # Certificates

    @app.post("/certificates", response_model=dict, status_code=201)
    def create_certificate(
        request: CreateCertificateRequest,
        caller: str = Depends(get_principal),
        engine: LifecycleEngine = Depends(get_engine),
    ):
        """Create a certificate owned by the calling provider"""
        token_id = engine.create_token(
            caller,
            request.energy_amount,
            request.price_per_unit,
            request.start_date,
            request.end_date,
            request.source_type,
            request.delivery_point,
            request.contract_terms_hash,
            request.metadata_ref,
        )
        return {
            "success": True,
            "certificate": engine.get_certificate(token_id).model_dump(mode="json"),
            "message": "Certificate created successfully",
        }

    @app.get("/certificates", response_model=dict)
    def get_certificates(
        owner: Optional[str] = None,
        engine: LifecycleEngine = Depends(get_engine),
    ):
        """Get certificates, optionally filtered by owner"""
        if owner:
            certificates = engine.get_certificates_by_owner(owner)
        else:
            certificates = engine.state.certificates.all()

        return {
            "success": True,
            "count": len(certificates),
            "certificates": [cert.model_dump(mode="json") for cert in certificates],
        }

    @app.get("/certificates/{token_id}", response_model=dict)
    def get_certificate(token_id: int, engine: LifecycleEngine = Depends(get_engine)):
        return {
            "success": True,
            "certificate": engine.get_certificate(token_id).model_dump(mode="json"),
            "state": engine.certificate_state(token_id).value,
        }

    @app.get("/certificates/{token_id}/owner", response_model=dict)
    def get_owner(token_id: int, engine: LifecycleEngine = Depends(get_engine)):
        return {"token_id": token_id, "owner": engine.owner_of(token_id)}

    # Listings

    @app.get("/certificates/{token_id}/listing", response_model=dict)
    def get_listing(token_id: int, engine: LifecycleEngine = Depends(get_engine)):
        is_for_sale, price = engine.sale_status(token_id)
        return {"token_id": token_id, "is_for_sale": is_for_sale, "price": price}

    @app.post("/certificates/{token_id}/listing", response_model=dict)
    def list_certificate(
        token_id: int,
        request: ListingRequest,
        caller: str = Depends(get_principal),
        engine: LifecycleEngine = Depends(get_engine),
    ):
        listing = engine.list_token_for_sale(token_id, request.price, caller)
        return {"success": True, "listing": listing.model_dump(mode="json")}

    @app.delete("/certificates/{token_id}/listing", response_model=dict)
    def withdraw_certificate(
        token_id: int,
        caller: str = Depends(get_principal),
        engine: LifecycleEngine = Depends(get_engine),
    ):
        listing = engine.withdraw_token_from_sale(token_id, caller)
        return {"success": True, "listing": listing.model_dump(mode="json")}

    @app.get("/marketplace", response_model=dict)
    def get_marketplace(engine: LifecycleEngine = Depends(get_engine)):
        """Every certificate currently for sale"""
        offers = [
            {"certificate": cert.model_dump(mode="json"), "price": listing.price}
            for cert, listing in engine.marketplace()
        ]
        return {"success": True, "count": len(offers), "offers": offers}

    # Purchase and retirement

    @app.post("/certificates/{token_id}/purchase", response_model=dict)
    def buy_certificate(
        token_id: int,
        request: PurchaseRequest,
        caller: str = Depends(get_principal),
        engine: LifecycleEngine = Depends(get_engine),
    ):
        """Buy a listed certificate; the full payment is forwarded to the seller"""
        event = engine.buy_token(token_id, caller, request.payment)
        return {
            "success": True,
            "purchase": event.model_dump(mode="json"),
            "message": "Purchase completed successfully",
        }

    @app.post("/certificates/{token_id}/burn", response_model=dict)
    def burn_certificate(
        token_id: int,
        caller: str = Depends(get_principal),
        engine: LifecycleEngine = Depends(get_engine),
    ):
        """Retire a certificate held by the calling consumer"""
        cert = engine.burn_token(token_id, caller)
        return {"success": True, "certificate": cert.model_dump(mode="json")}

    # Audit and reporting

    @app.get("/events", response_model=dict)
    def get_events(
        token_id: Optional[int] = None,
        engine: LifecycleEngine = Depends(get_engine),
    ):
        events = engine.log.for_token(token_id) if token_id is not None else engine.log.events
        return {
            "success": True,
            "count": len(events),
            "events": [event.model_dump(mode="json") for event in events],
        }

    @app.get("/statistics", response_model=dict)
    def get_statistics(engine: LifecycleEngine = Depends(get_engine)):
        return {"success": True, "registry": registry_statistics(engine.state, engine.log)}

    @app.post("/change_log_level")
    def change_log_level(request: LoggingLevelRequest):
        """Change the logging level at runtime for the registry loggers."""
        numeric_level = getattr(logging, request.level.value)
        set_logger_and_children_level(logger, numeric_level)
        return {
            "message": f"Log level changed to {request.level.value}",
            "effective_level": logging.getLevelName(logger.getEffectiveLevel()),
        }

    return app


app = create_app()


def main():
    import uvicorn

    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    main()
