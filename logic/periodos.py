"""Utilidades para trabajar con periodos mensuales."""

from __future__ import annotations

import calendar
from datetime import datetime, time
from typing import Iterable, Tuple

from logic.modelos import Periodo, Transaccion


def resolver_periodo(anio: int, mes: int) -> Periodo:
    """Devuelve el primer y el ultimo instante del mes indicado."""

    if not 1 <= mes <= 12:
        raise ValueError(f"Mes invalido: {mes}")
    ultimo_dia = calendar.monthrange(anio, mes)[1]
    desde = datetime(anio, mes, 1)
    hasta = datetime.combine(desde.replace(day=ultimo_dia), time.max)
    return Periodo(desde=desde, hasta=hasta)


def periodo_desde_id(periodo_id: str) -> Periodo:
    """``"2024-03"`` -> periodo de marzo de 2024."""

    try:
        anio, mes = (int(p) for p in periodo_id.split("-"))
    except ValueError:
        raise ValueError(f"Identificador de periodo invalido: {periodo_id!r}") from None
    return resolver_periodo(anio, mes)


def periodo_anterior(periodo: Periodo) -> Periodo:
    anio, mes = periodo.desde.year, periodo.desde.month
    if mes == 1:
        return resolver_periodo(anio - 1, 12)
    return resolver_periodo(anio, mes - 1)


def particionar(
    transacciones: Iterable[Transaccion],
    periodo: Periodo,
) -> Tuple[list[Transaccion], list[Transaccion]]:
    """Separa en (previas, en_ventana) conservando el orden de entrada.

    Las transacciones posteriores al periodo no quedan en ninguna de las dos.
    """

    previas: list[Transaccion] = []
    en_ventana: list[Transaccion] = []
    for tx in transacciones:
        if tx.fecha < periodo.desde:
            previas.append(tx)
        elif tx.fecha <= periodo.hasta:
            en_ventana.append(tx)
    return previas, en_ventana
