"""Libros diarios por cuenta con saldo corrido."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from logic.modelos import CUENTAS, ClaveCuenta, Cuenta, FilaLibro, Periodo, Transaccion
from logic.periodos import particionar


@dataclass(frozen=True)
class FilaMayor:
    cuenta: ClaveCuenta
    saldo_inicial: float
    total_credito: float
    total_debito: float
    saldo_final: float


def calcular_cuenta(
    clave: ClaveCuenta,
    transacciones: Iterable[Transaccion],
    periodo: Periodo,
    saldo_arrastre: float | None = None,
) -> Cuenta:
    """Arma el libro de una cuenta para el periodo.

    El saldo inicial es la suma de las transacciones previas, salvo que se pase
    ``saldo_arrastre`` (saldo final de un estado guardado), que lo reemplaza.
    Las transacciones del periodo se ordenan por fecha; a igual fecha se
    respeta el orden de entrada.
    """
    propias = [tx for tx in transacciones if tx.cuenta == clave]
    previas, en_ventana = particionar(propias, periodo)

    if saldo_arrastre is not None:
        saldo_inicial = round(float(saldo_arrastre), 2)
    else:
        saldo_inicial = round(sum(tx.credito - tx.debito for tx in previas), 2)

    # sorted() es estable: los empates conservan el orden de la coleccion
    en_ventana = sorted(en_ventana, key=lambda tx: tx.fecha)

    saldo = saldo_inicial
    filas: list[FilaLibro] = []
    for tx in en_ventana:
        saldo = round(saldo + tx.credito - tx.debito, 2)
        filas.append(FilaLibro(
            fecha=tx.fecha,
            descripcion=tx.descripcion,
            referencia=tx.referencia,
            credito=tx.credito,
            debito=tx.debito,
            saldo=saldo,
            id=tx.id,
        ))

    return Cuenta(
        clave=clave,
        saldo_inicial=saldo_inicial,
        transacciones=tuple(filas),
        saldo_final=saldo,
        total_credito=round(sum(f.credito for f in filas), 2),
        total_debito=round(sum(f.debito for f in filas), 2),
    )


def calcular_libros(
    transacciones: Sequence[Transaccion],
    periodo: Periodo,
    arrastre: Mapping[str, float] | None = None,
) -> dict[ClaveCuenta, Cuenta]:
    """Calcula las cuatro cuentas. ``arrastre`` trae saldos iniciales por cuenta."""
    arrastre = arrastre or {}
    return {
        clave: calcular_cuenta(clave, transacciones, periodo, arrastre.get(clave))
        for clave in CUENTAS
    }


def libro_mayor(libros: Mapping[ClaveCuenta, Cuenta]) -> list[FilaMayor]:
    return [
        FilaMayor(
            cuenta=c.clave,
            saldo_inicial=c.saldo_inicial,
            total_credito=c.total_credito,
            total_debito=c.total_debito,
            saldo_final=c.saldo_final,
        )
        for c in libros.values()
    ]


def cuenta_a_dict(cuenta: Cuenta) -> dict:
    """Vista serializable del libro de una cuenta."""
    return {
        "startBalance": cuenta.saldo_inicial,
        "transactions": [
            {
                "date": f.fecha,
                "description": f.descripcion,
                "reference": f.referencia,
                "credit": f.credito,
                "debit": f.debito,
                "balance": f.saldo,
            }
            for f in cuenta.transacciones
        ],
        "endBalance": cuenta.saldo_final,
        "totalCredit": cuenta.total_credito,
        "totalDebit": cuenta.total_debito,
    }
