from fastapi import APIRouter
from app.routers import resume, profile

# Centralized API router hub; main.py only imports this
api_router = APIRouter()

api_router.include_router(resume.router, tags=["Resumes"])
api_router.include_router(profile.router, tags=["Profile"])
