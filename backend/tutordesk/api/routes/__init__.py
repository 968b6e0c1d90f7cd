from fastapi import APIRouter

from tutordesk.api.routes import admin_inquiries, contact, health, inquiries

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(inquiries.router, prefix="/inquiries", tags=["inquiries"])
api_router.include_router(contact.router, prefix="/contact", tags=["contact"])
api_router.include_router(admin_inquiries.router, tags=["admin"])
