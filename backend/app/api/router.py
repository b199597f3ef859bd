from fastapi import APIRouter

from app.api.routes import admin_auth
from app.api.routes import files
from app.api.routes import forms

api_router = APIRouter()
api_router.include_router(forms.router)
api_router.include_router(files.router)
api_router.include_router(admin_auth.router)
