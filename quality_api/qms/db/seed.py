"""
Database seeding with the plant's starter data.

Seeds, each only when still empty:
- Users (Administrator, Quality, Production) with SEED_DEFAULT_PASSWORD
- Formulations for two powder flavours
- One completed production lot
- One record each for hygiene, luminometry, sensory, PCC, scales, endowment
- Utensil inventory

Usage:
  python -m qms.db.run_migrations upgrade head
  python -m qms.db.seed
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from qms.core.logging import configure_logging
from qms.core.security import get_password_hash
from qms.core.settings import get_app_settings
from qms.db.session import get_session_maker
from qms.repositories.documents import DocumentRepository
from qms.repositories.security import UserRepository

logger = logging.getLogger(__name__)

# 1x1 transparent PNG used as the stored signature of seeded records
SIGNATURE = (
    "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8/5+hHgAHggJ/PchI7wAAAABJRU5ErkJggg=="
)

ADMIN = {"name": "Admin Tropical", "id": "9j3kL8sP2dR7vXyZ1oA5bC6wE4F2", "role": "Administrator"}
QUALITY = {"name": "Iván de Calidad", "id": "aB1cD2eF3gH4iJ5kL6mN7oP8qR9s", "role": "Quality"}
PRODUCTION = {"name": "Pedro de Producción", "id": "tU9vW8xY7zZ6aB5cD4eF3gH2iJ1k", "role": "Production"}

USERS: List[Dict[str, Any]] = [
    {**ADMIN, "email": "admin@tropical.com", "documentNumber": "123456789"},
    {**QUALITY, "email": "calidad@tropical.com", "documentNumber": "987654321"},
    {**PRODUCTION, "email": "produccion@tropical.com", "documentNumber": "1122334455"},
]

FORMULATIONS: List[Dict[str, Any]] = [
    {
        "customId": "FORM-001",
        "item": "PROD-SK-100",
        "name": "Sabor Carne en Polvo",
        "ingredients": 5,
        "lastUpdated": "2024-05-20",
        "fileName": "Formulacion_Sabor_Carne.xlsx",
        "isInitial": True,
        "data": json.dumps(
            [
                [], [], [],
                ["Referencia", "PRODUCTOS", "CANTIDAD", "Unidad"],
                ["SK-101", "Sal", 10, "kg"],
                ["SK-102", "Potenciador de Sabor", 5, "kg"],
                ["SK-103", "Ajo en Polvo", 2, "kg"],
                ["SK-104", "Cebolla en Polvo", 2, "kg"],
                ["SK-105", "Pimienta Negra", 1, "kg"],
            ]
        ),
    },
    {
        "customId": "FORM-002",
        "item": "PROD-SP-200",
        "name": "Sabor Pollo en Polvo",
        "ingredients": 4,
        "lastUpdated": "2024-05-21",
        "fileName": "Formulacion_Sabor_Pollo.xlsx",
        "isInitial": True,
        "data": json.dumps(
            [
                [], [], [],
                ["Referencia", "PRODUCTOS", "CANTIDAD", "Unidad"],
                ["SP-201", "Sal", 12, "kg"],
                ["SP-202", "Extracto de Pollo", 6, "kg"],
                ["SP-203", "Cúrcuma", 1.5, "kg"],
                ["SP-204", "Perejil Deshidratado", 0.5, "kg"],
            ]
        ),
    },
]

PRODUCTION_LOTS: List[Dict[str, Any]] = [
    {
        "customId": "LOTE-2405-001",
        "type": "powder",
        "item": "PROD-SK-100",
        "product": "Sabor Carne en Polvo",
        "lot": "P202405-101",
        "formulationId": "FORM-001",
        "date": "2024-05-21",
        "startTime": "08:00",
        "endTime": "12:00",
        "status": "Completado",
        "responsible": PRODUCTION,
        "performance": 98.5,
        "finalProductReal": 19.7,
        "finalProductTheoreticalPowder": 20,
        "ingredients": [
            {"ref": "SK-101", "name": "Sal", "quantity": 10, "unit": "kg", "lot": "LOTE-SAL-001", "check": "C", "attentionTo": ""},
            {"ref": "SK-102", "name": "Potenciador de Sabor", "quantity": 5, "unit": "kg", "lot": "LOTE-POT-002", "check": "C", "attentionTo": ""},
        ],
        "packagingMaterials": [{"product": "Bolsa 1kg", "lot": "B-001", "expiration": "2026-01-01"}],
        "signature": SIGNATURE,
    },
]

HYGIENE: List[Dict[str, Any]] = [
    {
        "customId": "HYG-001",
        "area": "Mezcladora #1",
        "date": "2024-05-21",
        "status": "Verificado",
        "lastFabrication": "Sabor Carne en Polvo",
        "item": "PROD-SK-100",
        "lot": "P202405-101",
        "responsible": PRODUCTION,
        "signature": SIGNATURE,
    }
]

LUMINOMETRY: List[Dict[str, Any]] = [
    {
        "customId": "ATP-001",
        "location": "Mesa de Empaque 1",
        "result": 8,
        "status": "Pasa",
        "date": "2024-05-21",
        "responsible": QUALITY,
        "signature": SIGNATURE,
    }
]

SENSORY: List[Dict[str, Any]] = [
    {
        "customId": "SENS-001",
        "product": "Sabor Carne en Polvo",
        "lot": "P202405-101",
        "item": "PROD-SK-100",
        "odor": "Conforme",
        "color": "Conforme",
        "appearance": "Conforme",
        "result": "Aprobado",
        "date": "2024-05-21",
        "responsible": QUALITY,
        "signature": SIGNATURE,
    }
]

PCC: List[Dict[str, Any]] = [
    {
        "customId": "PCC-001",
        "pccId": "Malla 800µm",
        "meshState": "Conforme",
        "filterState": "N/A",
        "meshInUse": True,
        "filterInUse": False,
        "date": "2024-05-21",
        "responsible": PRODUCTION,
        "signature": SIGNATURE,
    }
]

SCALES: List[Dict[str, Any]] = [
    {
        "customId": "SCALE-001",
        "scale": "Báscula de Piso #1",
        "testType": "Excentricidad",
        "result": "Pasa",
        "date": "2024-05-21",
        "product": "Sabor Carne en Polvo",
        "lot": "P202405-101",
        "responsible": QUALITY,
        "signature": SIGNATURE,
        "unit": "kg",
        "patternWeight": 20,
        "readings": {
            "Punto 1 (Centro)": 20.01,
            "Punto 2 (Esq. Sup. Izq.)": 20.02,
            "Punto 3 (Esq. Sup. Der.)": 20.01,
            "Punto 4 (Esq. Inf. Izq.)": 19.99,
            "Punto 5 (Esq. Inf. Der.)": 20.00,
        },
    }
]

ENDOWMENT: List[Dict[str, Any]] = [
    {
        "customId": "END-001",
        "person": "Pedro de Producción",
        "status": "Conforme",
        "date": "2024-05-21",
        "responsible": QUALITY,
        "items": {"uniformeDia": True, "botasUniformeLimpio": True, "unasLimpias": True},
        "signature": SIGNATURE,
    }
]

UTENSILS: List[Dict[str, Any]] = [
    {"customId": "UT-001", "name": "Cuchillo de Corte", "entry": 5, "exit": 5},
    {"customId": "UT-002", "name": "Espátula de Mezcla", "entry": 10, "exit": 10},
]

DOCUMENT_FIXTURES: Dict[str, List[Dict[str, Any]]] = {
    "formulations": FORMULATIONS,
    "production": PRODUCTION_LOTS,
    "hygiene": HYGIENE,
    "quality_luminometry": LUMINOMETRY,
    "quality_sensory": SENSORY,
    "pcc": PCC,
    "scales": SCALES,
    "endowment": ENDOWMENT,
    "utensils": UTENSILS,
}


async def _seed_users(session: AsyncSession, password: str) -> int:
    repo = UserRepository(session)
    if await repo.count_users() > 0:
        return 0
    hashed = get_password_hash(password)
    for u in USERS:
        await repo.create_user(
            user_id=u["id"],
            name=u["name"],
            email=u["email"],
            role=u["role"],
            document_type="CC",
            document_number=u["documentNumber"],
            avatar_url="https://placehold.co/96x96",
            hashed_password=hashed,
        )
    logger.info("Seeded users with %d accounts.", len(USERS))
    return len(USERS)


# PUBLIC_INTERFACE
async def seed_collections(session: AsyncSession, password: str) -> Dict[str, int]:
    """Seed users and every fixture collection on the given session; returns counts written."""
    counts = {"users": await _seed_users(session, password)}
    documents = DocumentRepository(session)
    for collection, items in DOCUMENT_FIXTURES.items():
        counts[collection] = await documents.seed_initial_data(collection, items)
    return counts


# PUBLIC_INTERFACE
async def seed_all_data() -> Dict[str, int]:
    """
    Seed the database with the starter plant data.

    Collections that already hold data are left untouched.
    """
    password = get_app_settings().SEED_DEFAULT_PASSWORD
    async with get_session_maker()() as session:
        return await seed_collections(session, password)


# PUBLIC_INTERFACE
def main() -> None:
    """Entrypoint to run the asynchronous seeding."""
    configure_logging()
    asyncio.run(seed_all_data())


if __name__ == "__main__":
    main()
