"""Recalculo de un periodo a partir de un lote inmutable de registros.

El motor no escucha suscripciones: cada evento de cambio trae (o provoca leer)
un lote completo y produce un resultado nuevo. El ultimo resultado gana.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from infra.logger import get_logger
from logic.caja_chica import fusionar_caja_chica, resumir_caja_chica
from logic.clasificador import clasificar_lote
from logic.errores import ErrorLecturaFuente
from logic.libro import calcular_libros
from logic.modelos import ClaveCuenta, Cuenta, Periodo, ResumenCajaChica, Transaccion
from logic.periodos import particionar, resolver_periodo


COLECCION_PAGOS = "payments"
COLECCION_GASTOS = "gastos"
COLECCION_CAJA_CHICA = "cajaChica_movimientos"

log = get_logger()


def _congelar(registros: Iterable[Mapping]) -> tuple[Mapping, ...]:
    return tuple(MappingProxyType(dict(r)) for r in registros)


@dataclass(frozen=True)
class LoteRegistros:
    pagos: tuple[Mapping, ...] = ()
    gastos: tuple[Mapping, ...] = ()
    caja_chica: tuple[Mapping, ...] = ()

    @classmethod
    def crear(
        cls,
        pagos: Iterable[Mapping] = (),
        gastos: Iterable[Mapping] = (),
        caja_chica: Iterable[Mapping] = (),
    ) -> "LoteRegistros":
        return cls(_congelar(pagos), _congelar(gastos), _congelar(caja_chica))


@dataclass(frozen=True)
class EventoCambio:
    """Notificacion de cambio en las colecciones de un condominio."""

    condo_id: str
    lote: LoteRegistros
    coleccion: str | None = None


@dataclass(frozen=True)
class ResultadoPeriodo:
    condo_id: str
    periodo: Periodo
    libros: dict[ClaveCuenta, Cuenta]
    caja_chica: ResumenCajaChica
    gastos_periodo: tuple[Transaccion, ...] = ()
    arrastre: dict[str, float] | None = None

    @property
    def estado_final(self) -> dict[str, float]:
        return {clave: c.saldo_final for clave, c in self.libros.items()}


def transacciones_del_lote(lote: LoteRegistros) -> list[Transaccion]:
    """Todas las transacciones del lote, con la caja chica ya fusionada."""
    pagos = clasificar_lote(lote.pagos, "pago")
    gastos = [tx for tx in clasificar_lote(lote.gastos, "gasto") if tx.cuenta != "cajaChica"]
    caja = fusionar_caja_chica(lote.caja_chica, lote.gastos)
    return pagos + gastos + caja


def calcular_periodo(
    condo_id: str,
    lote: LoteRegistros,
    periodo: Periodo,
    arrastre: Mapping[str, float] | None = None,
) -> ResultadoPeriodo:
    """Funcion pura: mismo lote y mismo arrastre producen el mismo resultado."""
    transacciones = transacciones_del_lote(lote)
    libros = calcular_libros(transacciones, periodo, arrastre)

    # egresos del periodo tal como se registraron, de cualquier cuenta
    _, gastos_periodo = particionar(clasificar_lote(lote.gastos, "gasto"), periodo)
    gastos_periodo.sort(key=lambda tx: tx.fecha)

    return ResultadoPeriodo(
        condo_id=condo_id,
        periodo=periodo,
        libros=libros,
        caja_chica=resumir_caja_chica(libros["cajaChica"]),
        gastos_periodo=tuple(gastos_periodo),
        arrastre=dict(arrastre) if arrastre is not None else None,
    )


def recalcular_por_evento(
    evento: EventoCambio,
    periodo: Periodo,
    arrastre: Mapping[str, float] | None = None,
) -> ResultadoPeriodo:
    log.debug("Recalculando %s %s (cambio en %s)", evento.condo_id, periodo.id, evento.coleccion or "todo")
    return calcular_periodo(evento.condo_id, evento.lote, periodo, arrastre)


def leer_lote(fuente, condo_id: str) -> LoteRegistros:
    """Lee las tres colecciones del condominio. Cualquier fallo es ErrorLecturaFuente."""
    datos: dict[str, list] = {}
    for coleccion in (COLECCION_PAGOS, COLECCION_GASTOS, COLECCION_CAJA_CHICA):
        try:
            datos[coleccion] = list(fuente.leer(condo_id, coleccion))
        except ErrorLecturaFuente:
            raise
        except Exception as e:
            raise ErrorLecturaFuente(condo_id, coleccion, e) from e
    return LoteRegistros.crear(
        pagos=datos[COLECCION_PAGOS],
        gastos=datos[COLECCION_GASTOS],
        caja_chica=datos[COLECCION_CAJA_CHICA],
    )


class MotorContable:
    """Mantiene el ultimo resultado calculado por (condominio, periodo)."""

    def __init__(self, fuente):
        self.fuente = fuente
        self._resultados: dict[tuple[str, str], ResultadoPeriodo] = {}

    def ultimo(self, condo_id: str, periodo_id: str) -> ResultadoPeriodo | None:
        return self._resultados.get((condo_id, periodo_id))

    def refrescar(
        self,
        condo_id: str,
        anio: int,
        mes: int,
        arrastre: Mapping[str, float] | None = None,
    ) -> ResultadoPeriodo:
        """Lee un lote nuevo y recalcula. Si la lectura falla, el resultado previo queda intacto."""
        periodo = resolver_periodo(anio, mes)
        try:
            lote = leer_lote(self.fuente, condo_id)
        except ErrorLecturaFuente as e:
            log.error("No se pudo recalcular %s %s: %s", condo_id, periodo.id, e)
            raise

        resultado = calcular_periodo(condo_id, lote, periodo, arrastre)
        self._resultados[(condo_id, periodo.id)] = resultado
        return resultado

    def aplicar_evento(self, evento: EventoCambio, anio: int, mes: int,
                       arrastre: Mapping[str, float] | None = None) -> ResultadoPeriodo:
        periodo = resolver_periodo(anio, mes)
        resultado = recalcular_por_evento(evento, periodo, arrastre)
        self._resultados[(evento.condo_id, periodo.id)] = resultado
        return resultado
