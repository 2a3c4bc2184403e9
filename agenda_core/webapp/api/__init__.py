from fastapi import APIRouter

from . import agendamentos, recursos, sistema

router = APIRouter()
router.include_router(recursos.oficinas_router, prefix="/oficinas", tags=["oficinas"])
router.include_router(recursos.educadores_router, prefix="/educadores", tags=["educadores"])
router.include_router(recursos.turmas_router, prefix="/turmas", tags=["turmas"])
router.include_router(agendamentos.router, prefix="/agendamentos", tags=["agendamentos"])
router.include_router(sistema.router, prefix="/sistema", tags=["sistema"])

__all__ = ["router"]
