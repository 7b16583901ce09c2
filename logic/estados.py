from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Mapping

from infra.config import load_config
from infra.logger import get_logger
from logic.motor import ResultadoPeriodo, calcular_periodo, leer_lote
from logic.modelos import EstadoFinanciero, Periodo
from logic.periodos import periodo_anterior, periodo_desde_id


_CFG = load_config("config.yaml")

log = get_logger()

CONCEPTOS_INGRESO = {
    "banco": "Recaudación Bancaria",
    "efectivoBs": "Recaudación Efectivo Bs.",
    "efectivoUsd": "Recaudación Efectivo USD",
}


def disponibilidad_total(estado_final: Mapping[str, float], tasa_usd: float = 1.0) -> float:
    """Suma de las cuatro cuentas; el efectivo en USD se multiplica por la tasa dada."""
    return round(
        estado_final.get("banco", 0.0)
        + estado_final.get("efectivoBs", 0.0)
        + estado_final.get("efectivoUsd", 0.0) * tasa_usd
        + estado_final.get("cajaChica", 0.0),
        2,
    )


def construir_estado(
    resultado: ResultadoPeriodo,
    notas: str = "",
    tasa_usd: float | None = None,
    creado_en: datetime | None = None,
) -> EstadoFinanciero:
    """Arma el estado financiero (ingresos, egresos, caja chica y saldos) de un periodo."""
    tasa = _CFG.contabilidad.tasa_usd if tasa_usd is None else tasa_usd
    libros = resultado.libros

    ingresos = tuple(
        {"concepto": concepto, "monto": libros[clave].total_credito}
        for clave, concepto in CONCEPTOS_INGRESO.items()
    )
    egresos = tuple(
        {
            "id": tx.id.split(":", 1)[1],
            "dia": f"{tx.fecha.day:02d}",
            "concepto": tx.descripcion,
            "monto": tx.importe,
        }
        for tx in resultado.gastos_periodo
    )
    estado_final = resultado.estado_final

    return EstadoFinanciero(
        periodo_id=resultado.periodo.id,
        ingresos=ingresos,
        egresos=egresos,
        caja_chica=resultado.caja_chica,
        saldos_anteriores={clave: c.saldo_inicial for clave, c in libros.items()},
        estado_final=estado_final,
        disponibilidad_total=disponibilidad_total(estado_final, tasa),
        notas=notas,
        creado_en=creado_en,
    )


class AlmacenEstados:
    """Estados financieros guardados por periodo, con arrastre de saldos."""

    def __init__(self, repositorio, fuente, modo_arrastre: str | None = None):
        self.repositorio = repositorio
        self.fuente = fuente
        self.modo_arrastre = modo_arrastre or _CFG.contabilidad.arrastre

    def historial(self, condo_id: str) -> list[EstadoFinanciero]:
        """Estados guardados, del creado mas recientemente al mas antiguo."""
        estados = self.repositorio.listar(condo_id)
        return sorted(estados, key=lambda e: e.creado_en or datetime.min, reverse=True)

    def estado_para_arrastre(self, condo_id: str, periodo: Periodo) -> EstadoFinanciero | None:
        """Estado cuyo ``estado_final`` se usa como saldo inicial de ``periodo``.

        En modo ``ultimo_creado`` es el ultimo estado guardado (por fecha de
        creacion), que no siempre es el del mes calendario anterior.
        """
        anterior_id = periodo_anterior(periodo).id
        if self.modo_arrastre == "mes_anterior":
            return self.repositorio.obtener(condo_id, anterior_id)

        candidatos = [e for e in self.historial(condo_id) if e.periodo_id != periodo.id]
        if not candidatos:
            return None
        elegido = candidatos[0]
        if elegido.periodo_id != anterior_id:
            log.warning(
                "Arrastre de %s para %s toma el estado %s (ultimo creado), no %s",
                condo_id, periodo.id, elegido.periodo_id, anterior_id,
            )
        else:
            log.info("Arrastre de %s para %s desde el estado %s", condo_id, periodo.id, elegido.periodo_id)
        return elegido

    def calcular(self, condo_id: str, periodo_id: str) -> ResultadoPeriodo:
        periodo = periodo_desde_id(periodo_id)
        previo = self.estado_para_arrastre(condo_id, periodo)
        arrastre = dict(previo.estado_final) if previo and previo.estado_final else None
        lote = leer_lote(self.fuente, condo_id)
        return calcular_periodo(condo_id, lote, periodo, arrastre)

    def obtener(self, condo_id: str, periodo_id: str, notas: str = "") -> EstadoFinanciero:
        """Devuelve el estado guardado o, si no existe, lo sintetiza sin guardarlo."""
        guardado = self.repositorio.obtener(condo_id, periodo_id)
        if guardado is not None:
            return guardado
        return construir_estado(self.calcular(condo_id, periodo_id), notas=notas)

    def guardar(self, condo_id: str, estado: EstadoFinanciero) -> EstadoFinanciero:
        """Guarda el estado reemplazando el del mismo periodo."""
        if estado.creado_en is None:
            estado = replace(estado, creado_en=datetime.now())
        self.repositorio.guardar(condo_id, estado)
        log.info("Estado financiero %s guardado para %s", estado.periodo_id, condo_id)
        return estado

    def eliminar(self, condo_id: str, periodo_id: str) -> None:
        self.repositorio.eliminar(condo_id, periodo_id)
