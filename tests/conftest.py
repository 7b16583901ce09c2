from datetime import datetime

import pytest

from infra.almacen import FuenteEnMemoria


@pytest.fixture
def registros_condo():
    """Colecciones de un condominio con movimientos en febrero y marzo de 2024."""
    return {
        "payments": [
            {"id": "p1", "paymentDate": datetime(2024, 2, 10), "paymentMethod": "transferencia",
             "totalAmount": 100.0, "status": "aprobado", "reference": "000111"},
            {"id": "p2", "paymentDate": datetime(2024, 3, 5), "paymentMethod": "movil",
             "totalAmount": 250.0, "status": "aprobado", "reference": "XXXX654321"},
            {"id": "p3", "paymentDate": datetime(2024, 3, 6), "paymentMethod": "efectivo_usd",
             "totalAmount": 40.0, "status": "aprobado"},
            {"id": "p4", "paymentDate": datetime(2024, 3, 6), "paymentMethod": "transferencia",
             "totalAmount": 999.0, "status": "pendiente"},
        ],
        "gastos": [
            {"id": "g1", "date": datetime(2024, 3, 7), "amount": 80.0, "description": "Mantenimiento"},
            {"id": "g2", "date": datetime(2024, 3, 8), "amount": 15.0, "paymentSource": "efectivo_bs",
             "cajaChica": True, "description": "Bombillos"},
        ],
        "cajaChica_movimientos": [
            {"id": "m1", "date": datetime(2024, 2, 1), "type": "ingreso", "amount": 50.0},
            {"id": "m2", "date": datetime(2024, 3, 8), "type": "egreso", "amount": 15.0, "expenseId": "g2"},
        ],
    }


@pytest.fixture
def fuente(registros_condo):
    return FuenteEnMemoria({"condo-1": registros_condo})
