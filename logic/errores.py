"""Errores del motor contable y de la conciliacion."""

from __future__ import annotations


class ErrorContable(Exception):
    """Base comun para los errores que el motor deja llegar al llamador."""


class ErrorImportacion(ErrorContable, ValueError):
    """El estado de cuenta no se puede importar (faltan columnas, archivo ilegible).

    Se lanza antes de conciliar: no hay resultados parciales.
    """


class ErrorLecturaFuente(ErrorContable, RuntimeError):
    """No se pudo leer una coleccion de origen (pagos, gastos, caja chica)."""

    def __init__(self, condo_id: str, coleccion: str, causa: Exception | None = None):
        self.condo_id = condo_id
        self.coleccion = coleccion
        self.causa = causa
        detalle = f": {causa}" if causa else ""
        super().__init__(f"Error leyendo '{coleccion}' del condominio {condo_id}{detalle}")


class ErrorPersistencia(ErrorContable, RuntimeError):
    """Fallo al guardar un estado financiero. Nunca queda un documento a medias."""
