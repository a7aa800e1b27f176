"""
lecturehub/routes/__init__.py
Route registration
"""
from fastapi import APIRouter
from lecturehub.routes import disciplines, modules, attribution

router = APIRouter()

router.include_router(disciplines.router)
router.include_router(modules.router)
router.include_router(attribution.users_router)
router.include_router(attribution.photos_router)
