import io
from datetime import datetime

import pandas as pd
import pytest

from infra.export import libro_a_dataframe, libros_a_excel_bytes, reporte_a_excel_bytes
from logic.clasificador import clasificar_lote
from logic.conciliacion import conciliar
from logic.libro import calcular_libros
from logic.modelos import MovimientoBancario
from logic.periodos import resolver_periodo


def libros_marzo():
    gastos = [{"id": "g1", "date": datetime(2024, 3, 7), "amount": 80.0, "description": "Luz"}]
    return calcular_libros(clasificar_lote(gastos, "gasto"), resolver_periodo(2024, 3))


def test_libro_a_dataframe_empieza_con_saldo_anterior():
    df = libro_a_dataframe(libros_marzo()["banco"])
    assert df.iloc[0]["Descripción"] == "Saldo Anterior"
    assert df.iloc[1]["Débito"] == pytest.approx(80.0)
    assert df.iloc[1]["Saldo"] == pytest.approx(-80.0)


def test_libros_a_excel_una_hoja_por_cuenta():
    contenido = libros_a_excel_bytes(libros_marzo())
    hojas = pd.read_excel(io.BytesIO(contenido), sheet_name=None, engine="openpyxl")
    assert list(hojas) == ["Banco", "Efectivo Bs", "Efectivo USD (Eq. Bs)", "Caja Chica"]
    assert len(hojas["Banco"]) == 2


def test_reporte_a_excel():
    banco = [MovimientoBancario(datetime(2024, 3, 5), 10.0, "111111", "111111")]
    contenido = reporte_a_excel_bytes(conciliar(banco, []))
    hojas = pd.read_excel(io.BytesIO(contenido), sheet_name=None, engine="openpyxl")
    assert len(hojas["No en App"]) == 1
    assert hojas["Conciliados"].empty
