from fastapi import APIRouter
from backoffice.api.v1.endpoints import entries, contacts, categories, reports

api_router = APIRouter()

api_router.include_router(entries.router, prefix="/entries", tags=["entries"])
api_router.include_router(contacts.router, prefix="/contacts", tags=["contacts"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
