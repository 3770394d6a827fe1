from fastapi import APIRouter

from app.api.v1.endpoints import (
    # Access Control
    auth,
    # Documents
    invoices,
    quotations,
    # Payments
    transactions,
)

# Create main API router
api_router = APIRouter(prefix="/api/v1")

# ==================== Authentication ====================
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"]
)

# ==================== Invoices ====================
api_router.include_router(
    invoices.router,
    prefix="/invoices",
    tags=["Invoices"]
)

# ==================== Quotations ====================
api_router.include_router(
    quotations.router,
    prefix="/quotations",
    tags=["Quotations"]
)

# ==================== Transactions ====================
api_router.include_router(
    transactions.router,
    prefix="/transactions",
    tags=["Transactions"]
)
