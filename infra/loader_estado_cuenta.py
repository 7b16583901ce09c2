from __future__ import annotations

import io
from pathlib import Path
from typing import Union, TextIO, BinaryIO

import pandas as pd

from infra.config import load_config
from infra.logger import get_logger
from logic.errores import ErrorImportacion
from logic.lectura import detectar_columnas


_CONFIG = load_config("config.yaml")
_EXTENSIONES_EXCEL = (".xlsx", ".xlsm")

log = get_logger()


def _rebobinar(obj) -> None:
    if hasattr(obj, "seek"):
        try:
            obj.seek(0)
        except (OSError, ValueError):
            pass


def _es_excel(path_or_file: Union[str, Path, TextIO, BinaryIO]) -> bool:
    """Detecta planillas por extension o por la firma ZIP (``PK``) del contenido."""
    nombre = path_or_file if isinstance(path_or_file, (str, Path)) else getattr(path_or_file, "name", "")
    if str(nombre).lower().endswith(_EXTENSIONES_EXCEL):
        return True
    if isinstance(path_or_file, (str, Path)) or isinstance(path_or_file, io.TextIOBase):
        return False
    if hasattr(path_or_file, "read"):
        _rebobinar(path_or_file)
        firma = path_or_file.read(2)
        _rebobinar(path_or_file)
        return firma == b"PK"
    return False


def _leer_excel(path_or_file) -> pd.DataFrame:
    # Se toma la primera hoja; dtype=object conserva seriales y fechas tal cual vienen
    _rebobinar(path_or_file)
    return pd.read_excel(path_or_file, sheet_name=0, engine="openpyxl", dtype=object)


def _leer_csv(path_or_file) -> pd.DataFrame:
    """Prueba encodings y separadores comunes hasta encontrar las columnas requeridas."""
    requeridas = _CONFIG.conciliacion.columnas_requeridas
    primero: pd.DataFrame | None = None
    last_err: Exception | None = None

    for enc in _CONFIG.lectura.csv_encodings:
        for sep in _CONFIG.lectura.csv_separadores:
            _rebobinar(path_or_file)
            try:
                df = pd.read_csv(
                    path_or_file,
                    sep=sep,
                    encoding=enc,
                    engine="python",
                    dtype=str,
                    keep_default_na=False,
                    skip_blank_lines=True,
                )
            except (UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
                last_err = e
                continue
            if df.shape[1] <= 1:
                continue
            if len(detectar_columnas(df, requeridas)) == len(requeridas):
                log.debug("CSV leido con encoding=%s sep=%r", enc, sep)
                return df
            if primero is None:
                primero = df

    if primero is not None:
        return primero
    raise ErrorImportacion(f"No se pudo leer el CSV con encodings/separadores comunes: {last_err}")


def cargar_estado_cuenta(path_or_file: Union[str, Path, TextIO, BinaryIO]) -> pd.DataFrame:
    """Carga un estado de cuenta (.xlsx/.xlsm primera hoja, o .csv) sin interpretar filas.

    Acepta ruta o archivo en memoria. No persiste archivos.
    """
    try:
        if _es_excel(path_or_file):
            df = _leer_excel(path_or_file)
        else:
            df = _leer_csv(path_or_file)
    except ErrorImportacion:
        raise
    except Exception as e:
        raise ErrorImportacion(f"El archivo parece estar corrupto o en un formato inesperado: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    return df
