from datetime import date, datetime

import pandas as pd
import pytest

from logic.errores import ErrorImportacion
from logic.lectura import a_fecha, detectar_columnas, limpiar_importe, parsear_estado_cuenta


def test_limpiar_importe_separadores():
    assert limpiar_importe("500,00") == 500.0
    assert limpiar_importe("500.25") == 500.25
    assert limpiar_importe("1.234,56") == 1234.56
    assert limpiar_importe("1,234.56") == 1234.56
    assert limpiar_importe("Bs. 1.234.567") == 1234567.0
    assert limpiar_importe("-80,5") == -80.5
    assert limpiar_importe(".50") == 0.5
    assert limpiar_importe("Bs.500") == 500.0
    assert limpiar_importe("$ 1.234,56") == 1234.56
    assert limpiar_importe(["12"]) is None
    assert limpiar_importe(42) == 42.0
    assert limpiar_importe("abc") is None
    assert limpiar_importe(None) is None
    assert limpiar_importe(float("nan")) is None


def test_a_fecha_formatos():
    assert a_fecha("05/03/2024") == datetime(2024, 3, 5)
    assert a_fecha("2024-03-05T10:15:00") == datetime(2024, 3, 5, 10, 15)
    assert a_fecha(date(2024, 3, 5)) == datetime(2024, 3, 5)
    assert a_fecha("31/02/2024") is None
    assert a_fecha("2024-03-05T10:15:00+00:00") == datetime(2024, 3, 5, 10, 15)
    assert a_fecha("") is None


def test_a_fecha_serial_de_planilla():
    # 45356 = 05/03/2024 en Excel
    assert a_fecha(45356, serial_excel=True) == datetime(2024, 3, 5)
    assert a_fecha(45356.5, serial_excel=True) == datetime(2024, 3, 5, 12, 0)
    assert a_fecha(45356) is None
    assert a_fecha("45356", serial_excel=True) == datetime(2024, 3, 5)


def test_detectar_columnas_tolerante():
    df = pd.DataFrame(columns=[" fecha ", "REFERENCIA", "Monto"])
    assert detectar_columnas(df, ["Fecha", "Referencia", "Monto"]) == {
        "Fecha": " fecha ", "Referencia": "REFERENCIA", "Monto": "Monto"
    }


def test_parsear_estado_cuenta_mixto():
    df = pd.DataFrame({
        "Fecha": [45356, "06/03/2024", datetime(2024, 3, 7), "xx/03/2024"],
        "Referencia": [12345678.0, "ABC654321", None, "999999"],
        "Monto": [500, "1.000,50", "abc", "10"],
    })
    imp = parsear_estado_cuenta(df)
    assert len(imp.movimientos) == 2
    assert len(imp.advertencias) == 2

    primero, segundo = imp.movimientos
    assert primero.fecha == datetime(2024, 3, 5)
    assert primero.referencia_original == "12345678"
    assert primero.referencia == "345678"
    assert segundo.referencia == "654321"
    assert segundo.importe == pytest.approx(1000.50)
    assert imp.total == pytest.approx(1500.50)


def test_monto_invalido_no_aborta_la_importacion():
    df = pd.DataFrame({"Fecha": ["05/03/2024", "05/03/2024"], "Referencia": ["1", "2"], "Monto": ["abc", "3"]})
    imp = parsear_estado_cuenta(df)
    assert [m.referencia for m in imp.movimientos] == ["2"]
    assert "Fila 2" in imp.advertencias[0]


def test_faltan_columnas():
    df = pd.DataFrame({"Fecha": ["05/03/2024"], "Monto": ["3"]})
    with pytest.raises(ErrorImportacion, match="Referencia"):
        parsear_estado_cuenta(df)
