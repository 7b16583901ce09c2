from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Iterable, Mapping

from infra.logger import get_logger
from logic.clasificador import clasificar, clasificar_lote
from logic.modelos import CicloReposicion, Cuenta, ResumenCajaChica, Transaccion


log = get_logger()


def fusionar_caja_chica(
    movimientos: Iterable[Mapping],
    gastos: Iterable[Mapping],
) -> list[Transaccion]:
    """Une los movimientos de caja chica y los gastos pagados con la caja.

    Ambas fuentes se clasifican y se fusionan por identidad de origen: un gasto
    que ademas quedo registrado como movimiento (``expenseId``) cuenta una sola
    vez. Gana la primera aparicion (primero movimientos, luego gastos).
    """
    candidatos = clasificar_lote(movimientos, "caja_chica") + [
        tx for tx in clasificar_lote(gastos, "gasto") if tx.cuenta == "cajaChica"
    ]

    vistos: set[str] = set()
    out: list[Transaccion] = []
    for tx in candidatos:
        if tx.id in vistos:
            log.debug("Caja chica: %s duplicado, se omite", tx.id)
            continue
        vistos.add(tx.id)
        out.append(tx)
    return out


def resumir_caja_chica(cuenta: Cuenta) -> ResumenCajaChica:
    return ResumenCajaChica(
        saldo_inicial=cuenta.saldo_inicial,
        reposiciones=cuenta.total_credito,
        gastos=cuenta.total_debito,
        saldo_final=cuenta.saldo_final,
    )


def ciclos_reposicion(movimientos: Iterable[Mapping]) -> list[CicloReposicion]:
    """Agrupa los movimientos por reposicion (``replenishmentId``) con saldo corrido.

    Cada ciclo empieza con su ingreso; los egresos del mismo ciclo se descuentan.
    Se devuelven del mas reciente al mas antiguo.
    """
    ingresos: dict[str, tuple[datetime, float]] = {}
    egresos: dict[str, list[Transaccion]] = defaultdict(list)

    for posicion, mov in enumerate(movimientos):
        rep_id = mov.get("replenishmentId")
        tx = clasificar(mov, "caja_chica", posicion)
        if not rep_id or tx is None:
            continue
        if tx.direccion == "credito":
            ingresos[rep_id] = (tx.fecha, tx.importe)
        else:
            egresos[rep_id].append(tx)

    huerfanos = set(egresos) - set(ingresos)
    if huerfanos:
        log.warning("Egresos de caja chica sin reposicion: %s", sorted(huerfanos))

    saldo = 0.0
    ciclos: list[CicloReposicion] = []
    for rep_id, (fecha, monto) in sorted(ingresos.items(), key=lambda kv: kv[1][0]):
        gastos = tuple(sorted(egresos.get(rep_id, []), key=lambda tx: tx.fecha))
        total_gastos = round(sum(g.importe for g in gastos), 2)
        saldo_final = round(saldo + monto - total_gastos, 2)
        ciclos.append(CicloReposicion(
            id=rep_id,
            fecha=fecha,
            monto=monto,
            saldo_previo=saldo,
            total_gastos=total_gastos,
            saldo_final=saldo_final,
            gastos=gastos,
        ))
        saldo = saldo_final
    ciclos.reverse()
    return ciclos
