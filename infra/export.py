from __future__ import annotations
import io
from typing import Mapping

import pandas as pd

from logic.conciliacion import ReporteConciliacion
from logic.modelos import Cuenta


TITULOS_CUENTA = {
    "banco": "Banco",
    "efectivoBs": "Efectivo Bs",
    "efectivoUsd": "Efectivo USD (Eq. Bs)",
    "cajaChica": "Caja Chica",
}
FORMATO_FECHA = "DD/MM/YYYY"


def libro_a_dataframe(cuenta: Cuenta) -> pd.DataFrame:
    """Libro diario de una cuenta, con la fila de saldo anterior al inicio."""
    filas = [{
        "Fecha": None,
        "Descripción": "Saldo Anterior",
        "Referencia": "",
        "Crédito": None,
        "Débito": None,
        "Saldo": cuenta.saldo_inicial,
    }]
    for f in cuenta.transacciones:
        filas.append({
            "Fecha": f.fecha,
            "Descripción": f.descripcion,
            "Referencia": f.referencia,
            "Crédito": f.credito or None,
            "Débito": f.debito or None,
            "Saldo": f.saldo,
        })
    return pd.DataFrame(filas, columns=["Fecha", "Descripción", "Referencia", "Crédito", "Débito", "Saldo"])


def reporte_a_dataframes(reporte: ReporteConciliacion) -> dict[str, pd.DataFrame]:
    conciliados = pd.DataFrame(
        [{
            "Fecha": c.banco.fecha,
            "Referencia Banco": c.banco.referencia_original,
            "Monto Banco": c.banco.importe,
            "Referencia App": c.app.referencia,
            "Monto App": c.app.importe,
            "Propietario": c.app.propietario,
        } for c in reporte.conciliados],
        columns=["Fecha", "Referencia Banco", "Monto Banco", "Referencia App", "Monto App", "Propietario"],
    )
    no_en_app = pd.DataFrame(
        [{"Fecha": b.fecha, "Referencia": b.referencia_original, "Monto": b.importe} for b in reporte.no_en_app],
        columns=["Fecha", "Referencia", "Monto"],
    )
    no_en_banco = pd.DataFrame(
        [{"Fecha": a.fecha, "Referencia": a.referencia, "Monto": a.importe, "Propietario": a.propietario}
         for a in reporte.no_en_banco],
        columns=["Fecha", "Referencia", "Monto", "Propietario"],
    )
    return {"Conciliados": conciliados, "No en App": no_en_app, "No en Banco": no_en_banco}


def dataframes_a_excel_bytes(
    hojas: Mapping[str, pd.DataFrame],
    formato_columnas_fecha: dict[str, str] | None = None
) -> bytes:
    """
    Exporta varios DataFrames (uno por hoja) a Excel conservando los tipos fecha (no texto).
    Si se pasa `formato_columnas_fecha` con {nombre_columna: "DD/MM/YYYY"}, aplica number_format.
    """
    buff = io.BytesIO()
    with pd.ExcelWriter(buff, engine="openpyxl") as writer:
        for sheet_name, df in hojas.items():
            df.to_excel(writer, index=False, sheet_name=sheet_name)
            if not formato_columnas_fecha:
                continue
            ws = writer.sheets[sheet_name]
            # Mapear nombres de columnas a letras
            headers = [c.value for c in ws[1]]
            for col_name, fmt in formato_columnas_fecha.items():
                if col_name in headers:
                    col_idx = headers.index(col_name) + 1
                    col_letter = ws.cell(row=1, column=col_idx).column_letter
                    for cell in ws[col_letter][1:]:
                        cell.number_format = fmt
    return buff.getvalue()


def libros_a_excel_bytes(libros: Mapping[str, Cuenta]) -> bytes:
    hojas = {TITULOS_CUENTA.get(clave, clave): libro_a_dataframe(c) for clave, c in libros.items()}
    return dataframes_a_excel_bytes(hojas, {"Fecha": FORMATO_FECHA})


def reporte_a_excel_bytes(reporte: ReporteConciliacion) -> bytes:
    return dataframes_a_excel_bytes(reporte_a_dataframes(reporte), {"Fecha": FORMATO_FECHA})
