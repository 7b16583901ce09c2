"""Normaliza pagos, gastos y movimientos de caja chica en una unica ``Transaccion``.

Es el unico lugar que conoce la forma de los registros del almacen
(``paymentDate``, ``totalAmount``, ``paymentSource``...). Los registros que no se
pueden clasificar se descartan sin error.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from infra.config import load_config
from infra.logger import get_logger
from logic.lectura import a_fecha, limpiar_importe
from logic.modelos import ClaveCuenta, Direccion, TipoRegistro, Transaccion


_CFG = load_config("config.yaml")

log = get_logger()

CUENTA_POR_METODO_PAGO: dict[str, ClaveCuenta] = {
    "transferencia": "banco",
    "movil": "banco",
    "efectivo_bs": "efectivoBs",
    "efectivo_usd": "efectivoUsd",
}

CUENTA_POR_ORIGEN_GASTO: dict[str, ClaveCuenta] = {
    "banco": "banco",
    "efectivo_bs": "efectivoBs",
    "efectivo_usd": "efectivoUsd",
}

DIRECCION_CAJA_CHICA: dict[str, Direccion] = {
    "ingreso": "credito",
    "egreso": "debito",
}


def _texto(valor, defecto: str = "N/A") -> str:
    if valor is None:
        return defecto
    texto = str(valor).strip()
    return texto or defecto


def _clave(valor) -> str | None:
    """Solo los textos sirven como clave de las tablas de clasificacion."""
    return valor if isinstance(valor, str) else None


def _id_origen(tipo: TipoRegistro, registro: Mapping, posicion: int) -> str:
    doc_id = registro.get("id")
    if doc_id in (None, ""):
        return f"{tipo}:#{posicion}"
    return f"{tipo}:{doc_id}"


def _clasificar_pago(registro: Mapping, estados_aprobados: Iterable[str]) -> tuple[ClaveCuenta, Direccion] | None:
    if str(registro.get("status", "")).lower() not in estados_aprobados:
        return None
    cuenta = CUENTA_POR_METODO_PAGO.get(_clave(registro.get("paymentMethod")))
    return (cuenta, "credito") if cuenta else None


def _clasificar_gasto(registro: Mapping) -> tuple[ClaveCuenta, Direccion] | None:
    origen = _clave(registro.get("paymentSource") or "banco")
    if registro.get("cajaChica") is True and origen in ("efectivo_bs", "efectivo_usd"):
        return "cajaChica", "debito"
    cuenta = CUENTA_POR_ORIGEN_GASTO.get(origen)
    return (cuenta, "debito") if cuenta else None


def _clasificar_caja_chica(registro: Mapping) -> tuple[ClaveCuenta, Direccion] | None:
    direccion = DIRECCION_CAJA_CHICA.get(_clave(registro.get("type")))
    return ("cajaChica", direccion) if direccion else None


def clasificar(
    registro: Mapping,
    tipo: TipoRegistro,
    posicion: int = 0,
    estados_aprobados: Iterable[str] | None = None,
) -> Transaccion | None:
    """Devuelve la transaccion canonica de un registro, o None si no aplica.

    La primera regla que coincide decide cuenta y direccion. ``posicion`` es el
    orden del registro en su coleccion y sirve de identidad cuando no trae ``id``.
    """
    aprobados = {e.lower() for e in (estados_aprobados or _CFG.contabilidad.estados_aprobados)}

    if tipo == "pago":
        destino = _clasificar_pago(registro, aprobados)
        fecha = a_fecha(registro.get("paymentDate"))
        importe = limpiar_importe(registro.get("totalAmount"))
    elif tipo == "gasto":
        destino = _clasificar_gasto(registro)
        fecha = a_fecha(registro.get("date"))
        importe = limpiar_importe(registro.get("amount"))
    elif tipo == "caja_chica":
        destino = _clasificar_caja_chica(registro)
        fecha = a_fecha(registro.get("date"))
        importe = limpiar_importe(registro.get("amount"))
    else:
        raise ValueError(f"Tipo de registro desconocido: {tipo}")

    if destino is None or fecha is None or importe is None:
        log.debug("Registro %s descartado en la posicion %d: %r", tipo, posicion, registro.get("id"))
        return None

    cuenta, direccion = destino
    if tipo == "caja_chica" and registro.get("expenseId"):
        # espejo de un gasto: comparte identidad con el gasto original
        id_origen = f"gasto:{registro['expenseId']}"
    else:
        id_origen = _id_origen(tipo, registro, posicion)

    if tipo == "caja_chica":
        referencia = _texto(registro.get("reference"), "Caja Chica")
    else:
        referencia = _texto(registro.get("reference"))

    return Transaccion(
        id=id_origen,
        fecha=fecha,
        importe=round(importe, 2),
        cuenta=cuenta,
        direccion=direccion,
        descripcion=_texto(registro.get("description")),
        referencia=referencia,
        origen=tipo,
    )


def clasificar_lote(
    registros: Iterable[Mapping],
    tipo: TipoRegistro,
    estados_aprobados: Iterable[str] | None = None,
) -> list[Transaccion]:
    """Clasifica una coleccion completa conservando el orden de la coleccion."""
    out: list[Transaccion] = []
    for posicion, registro in enumerate(registros):
        tx = clasificar(registro, tipo, posicion, estados_aprobados)
        if tx is not None:
            out.append(tx)
    return out
