from __future__ import annotations

import math
import re
import unicodedata
from dataclasses import dataclass, field
from datetime import date, datetime
from numbers import Integral, Real

import pandas as pd

from infra.config import load_config
from infra.logger import get_logger
from logic.errores import ErrorImportacion
from logic.modelos import MovimientoBancario


_CFG = load_config("config.yaml")
_EXCEL_ORIGEN = "1899-12-30"
_SERIAL = re.compile(r"\d+(?:\.\d+)?")
_PREFIJO_ABREVIADO = re.compile(r"^[^\d\-.]*[A-Za-z]\.")

log = get_logger()


@dataclass(frozen=True)
class ImportacionEstadoCuenta:
    movimientos: tuple[MovimientoBancario, ...]
    advertencias: tuple[str, ...] = field(default_factory=tuple)

    @property
    def total(self) -> float:
        return round(sum(m.importe for m in self.movimientos), 2)


def _sanitize_header(value: str) -> str:
    lowered = str(value).replace("\ufeff", "").strip().lower()
    normalized = unicodedata.normalize("NFKD", lowered)
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def _es_nulo(valor) -> bool:
    if valor is None or valor is pd.NA or valor is pd.NaT:
        return True
    if isinstance(valor, float) and math.isnan(valor):
        return True
    return False


def _normalizar_descripcion(valor) -> str:
    """Devuelve siempre texto sin sufijos `.0` cuando provienen de números."""
    if _es_nulo(valor):
        return ""
    if isinstance(valor, str):
        return valor.strip()
    if isinstance(valor, Integral):
        return str(int(valor))
    if isinstance(valor, Real):
        numero = float(valor)
        if math.isfinite(numero) and numero.is_integer():
            return str(int(numero))
        return str(valor)
    return str(valor)


def limpiar_importe(valor) -> float | None:
    """Convierte un importe (numero o texto con coma o punto decimal) a float.

    Devuelve None si no se puede interpretar.
    """
    if _es_nulo(valor) or isinstance(valor, bool):
        return None
    if isinstance(valor, Real):
        numero = float(valor)
        return numero if math.isfinite(numero) else None
    if not isinstance(valor, str):
        return None

    # prefijo de moneda ("Bs.", "$"); un punto suelto delante de los digitos es decimal
    s = _PREFIJO_ABREVIADO.sub("", valor.strip())
    s = re.sub(r"[^0-9,.\-]", "", s)
    if not s or not re.search(r"\d", s):
        return None
    if "," in s and "." in s:
        # el separador que aparece ultimo es el decimal
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", ".") if s.count(",") == 1 else s.replace(",", "")
    elif s.count(".") > 1:
        s = s.replace(".", "")
    try:
        numero = float(s)
    except ValueError:
        return None
    return numero if math.isfinite(numero) else None


def limpiar_importe_serie(serie: pd.Series) -> pd.Series:
    return serie.map(limpiar_importe).astype("float64")


def _sin_zona(fecha: datetime) -> datetime:
    if fecha.tzinfo is not None:
        return pd.Timestamp(fecha).tz_convert(None).to_pydatetime()
    return fecha


def _serial_a_fecha(serial: float) -> datetime | None:
    if not math.isfinite(serial):
        return None
    try:
        return pd.to_datetime(serial, unit="D", origin=_EXCEL_ORIGEN).to_pydatetime()
    except (ValueError, OverflowError, pd.errors.OutOfBoundsDatetime):
        return None


def a_fecha(valor, formato: str | None = None, serial_excel: bool = False) -> datetime | None:
    """Interpreta fechas de registros y planillas.

    Acepta datetime/date/Timestamp, textos ``dd/mm/yyyy`` (o el formato dado) e ISO,
    y opcionalmente numeros de serie de planilla de calculo, tambien como texto
    (un CSV los trae asi).
    """
    if _es_nulo(valor) or isinstance(valor, bool):
        return None
    if isinstance(valor, pd.Timestamp):
        return _sin_zona(valor.to_pydatetime())
    if isinstance(valor, datetime):
        return _sin_zona(valor)
    if isinstance(valor, date):
        return datetime(valor.year, valor.month, valor.day)
    if isinstance(valor, Real):
        return _serial_a_fecha(float(valor)) if serial_excel else None
    if not isinstance(valor, str):
        return None

    texto = valor.strip()
    if not texto:
        return None
    if serial_excel and _SERIAL.fullmatch(texto):
        return _serial_a_fecha(float(texto))

    fecha = pd.to_datetime(texto, format=formato or _CFG.conciliacion.formato_fecha, errors="coerce")
    if pd.isna(fecha):
        fecha = pd.to_datetime(texto, format="ISO8601", errors="coerce")
    if pd.isna(fecha):
        return None
    return _sin_zona(fecha.to_pydatetime())


def detectar_columnas(df: pd.DataFrame, requeridas: list[str]) -> dict[str, str]:
    """Mapea cada columna requerida a la columna real del DataFrame.

    Tolera mayusculas, espacios, BOM y acentos en la cabecera.
    """
    limpias = {_sanitize_header(c): c for c in reversed(list(df.columns))}
    out: dict[str, str] = {}
    for req in requeridas:
        original = limpias.get(_sanitize_header(req))
        if original is not None:
            out[req] = original
    return out


def parsear_estado_cuenta(
    df: pd.DataFrame,
    columnas_requeridas: list[str] | None = None,
    formato_fecha: str | None = None,
    largo_referencia: int | None = None,
) -> ImportacionEstadoCuenta:
    """Convierte las filas de un estado de cuenta (Fecha, Referencia, Monto) en movimientos.

    - Si faltan columnas requeridas se aborta toda la importacion (ErrorImportacion).
    - Las filas con fecha o monto invalidos se omiten con una advertencia.
    """
    cfg = _CFG.conciliacion
    requeridas = list(columnas_requeridas or cfg.columnas_requeridas)
    formato_fecha = formato_fecha or cfg.formato_fecha
    largo = largo_referencia or cfg.largo_referencia

    mapa = detectar_columnas(df, requeridas)
    faltantes = [c for c in requeridas if c not in mapa]
    if faltantes:
        raise ErrorImportacion(
            f"El archivo debe contener las columnas: {', '.join(requeridas)}. "
            f"Faltan: {', '.join(faltantes)}"
        )

    col_fecha, col_ref, col_monto = mapa["Fecha"], mapa["Referencia"], mapa["Monto"]
    importes = limpiar_importe_serie(df[col_monto])

    movimientos: list[MovimientoBancario] = []
    advertencias: list[str] = []
    filas = zip(df[col_fecha], df[col_ref], df[col_monto], importes)
    for n, (f, r, m, importe) in enumerate(filas, start=2):
        fecha = a_fecha(f, formato_fecha, serial_excel=True)
        if fecha is None or pd.isna(importe):
            msg = f"Fila {n} inválida omitida: Fecha={f!r}, Monto={m!r}"
            log.warning(msg)
            advertencias.append(msg)
            continue

        ref_original = _normalizar_descripcion(r)
        movimientos.append(MovimientoBancario(
            fecha=fecha,
            importe=round(float(importe), 2),
            referencia=ref_original[-largo:],
            referencia_original=ref_original,
        ))

    log.info("Estado de cuenta procesado: %d movimientos, %d filas omitidas",
             len(movimientos), len(advertencias))
    return ImportacionEstadoCuenta(tuple(movimientos), tuple(advertencias))
