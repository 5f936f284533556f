from fastapi import APIRouter
from .endpoints import hl7

api_router = APIRouter()

api_router.include_router(hl7.router, tags=["HL7 Pipeline"])
