"""
Aplicação principal FastAPI para estantes, layout e posicionamento de itens
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging
import os
from dotenv import load_dotenv
from models.database import Base, engine
from routers import shelves_router, placements_router, items_router
from services.errors import (
    ShelfError,
    InvalidGeometryError,
    SlotOccupiedError,
    ItemAlreadyPlacedError,
    SlotNotFoundError,
    ShelfNotFoundError,
    ItemNotFoundError,
    ValidationError,
)

load_dotenv()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# Criar diretório storage se não existir
os.makedirs("storage", exist_ok=True)

# Status HTTP por tipo de erro de domínio
ERROR_STATUS = {
    InvalidGeometryError: 422,
    ValidationError: 422,
    SlotOccupiedError: 409,
    ItemAlreadyPlacedError: 409,
    SlotNotFoundError: 404,
    ShelfNotFoundError: 404,
    ItemNotFoundError: 404,
}

# Criar app FastAPI
app = FastAPI(title="Estantes e Posicionamento", description="Layout de estantes e reconciliação de itens")

app.include_router(shelves_router)
app.include_router(placements_router)
app.include_router(items_router)


@app.on_event("startup")
async def startup_event():
    """Inicializar banco de dados na startup"""
    Base.metadata.create_all(bind=engine)


@app.exception_handler(ShelfError)
async def shelf_error_handler(request: Request, exc: ShelfError):
    """Erros de domínio viram resposta estruturada: tipo + identificadores"""
    status_code = ERROR_STATUS.get(type(exc), 400)
    logger.info("%s %s rejeitado (%s): %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
