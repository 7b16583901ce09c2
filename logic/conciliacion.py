from __future__ import annotations
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time
from typing import Iterable, Iterator, Mapping

from infra.config import load_config
from infra.loader_estado_cuenta import cargar_estado_cuenta
from infra.logger import get_logger
from logic.lectura import (
    ImportacionEstadoCuenta,
    _normalizar_descripcion,
    a_fecha,
    limpiar_importe,
    parsear_estado_cuenta,
)
from logic.modelos import (
    Conciliado,
    MovimientoBancario,
    PagoApp,
    ResultadoConciliacion,
    SoloApp,
    SoloBanco,
    dia,
)


_CFG = load_config("config.yaml")

log = get_logger()


@dataclass(frozen=True)
class Parametros:
    tolerancia_importe: float = _CFG.conciliacion.tolerancia_importe
    largo_referencia: int = _CFG.conciliacion.largo_referencia


@dataclass(frozen=True)
class TotalesConciliacion:
    conciliado: float = 0.0
    no_en_app: float = 0.0
    no_en_banco: float = 0.0
    total_banco: float = 0.0


@dataclass(frozen=True)
class ReporteConciliacion:
    conciliados: tuple[Conciliado, ...]
    no_en_app: tuple[MovimientoBancario, ...]     # estan en el banco, no en la app
    no_en_banco: tuple[PagoApp, ...]              # estan en la app, no en el banco
    totales: TotalesConciliacion = field(default_factory=TotalesConciliacion)

    def resultados(self) -> Iterator[ResultadoConciliacion]:
        yield from self.conciliados
        for b in self.no_en_app:
            yield SoloBanco(b)
        for a in self.no_en_banco:
            yield SoloApp(a)

    def a_dict(self) -> dict:
        return {
            "conciliated": [{"bank": asdict(c.banco), "app": asdict(c.app)} for c in self.conciliados],
            "notFoundInApp": [asdict(b) for b in self.no_en_app],
            "notFoundInBank": [asdict(a) for a in self.no_en_banco],
            "totals": {
                "conciliated": self.totales.conciliado,
                "notFoundInApp": self.totales.no_en_app,
                "notFoundInBank": self.totales.no_en_banco,
                "totalBank": self.totales.total_banco,
            },
        }


def _limites(desde: date | datetime, hasta: date | datetime) -> tuple[datetime, datetime]:
    """Un ``date`` como limite superior incluye todo ese dia."""
    if not isinstance(desde, datetime):
        desde = datetime.combine(desde, time.min)
    if not isinstance(hasta, datetime):
        hasta = datetime.combine(hasta, time.max)
    return desde, hasta


def filtrar_por_rango(
    movimientos: Iterable[MovimientoBancario],
    desde: date | datetime,
    hasta: date | datetime,
) -> list[MovimientoBancario]:
    desde, hasta = _limites(desde, hasta)
    return [m for m in movimientos if desde <= m.fecha <= hasta]


def pagos_app(
    pagos: Iterable[Mapping],
    desde: date | datetime,
    hasta: date | datetime,
    propietarios: Mapping[str, str] | None = None,
    estados_aprobados: Iterable[str] | None = None,
    largo_referencia: int | None = None,
) -> list[PagoApp]:
    """Reduce los pagos aprobados del rango a (fecha, referencia corta, monto)."""
    desde, hasta = _limites(desde, hasta)
    aprobados = {e.lower() for e in (estados_aprobados or _CFG.contabilidad.estados_aprobados)}
    largo = largo_referencia or _CFG.conciliacion.largo_referencia
    propietarios = propietarios or {}

    out: list[PagoApp] = []
    for posicion, p in enumerate(pagos):
        if str(p.get("status", "")).lower() not in aprobados:
            continue
        fecha = a_fecha(p.get("paymentDate"))
        importe = limpiar_importe(p.get("totalAmount"))
        if fecha is None or importe is None:
            log.debug("Pago %r sin fecha o monto validos, se omite", p.get("id"))
            continue
        if not desde <= fecha <= hasta:
            continue

        beneficiarios = p.get("beneficiaries") or []
        primero = beneficiarios[0] if beneficiarios else None
        owner_id = primero.get("ownerId") if isinstance(primero, Mapping) else None
        out.append(PagoApp(
            id=str(p.get("id") or f"#{posicion}"),
            fecha=fecha,
            referencia=_normalizar_descripcion(p.get("reference"))[-largo:],
            importe=round(importe, 2),
            propietario=propietarios.get(owner_id, "Desconocido"),
        ))
    return out


def _coincide(b: MovimientoBancario, a: PagoApp, tolerancia: float) -> bool:
    return (
        a.referencia == b.referencia
        and dia(a.fecha) == dia(b.fecha)
        and round(abs(a.importe - b.importe), 2) <= tolerancia
    )


def conciliar(
    banco: Iterable[MovimientoBancario],
    app: Iterable[PagoApp],
    params: Parametros = Parametros(),
) -> ReporteConciliacion:
    """Conciliacion voraz en una sola pasada.

    Cada movimiento bancario, en el orden recibido, toma el primer pago de la app
    aun libre con la misma referencia, el mismo dia y monto dentro de la
    tolerancia. El resultado depende del orden de entrada: no es una asignacion
    optima cuando hay referencias repetidas en un mismo dia.
    """
    banco = list(banco)
    pendientes_app = list(app)
    conciliados: list[Conciliado] = []
    no_en_app: list[MovimientoBancario] = []

    for b in banco:
        idx = next(
            (i for i, a in enumerate(pendientes_app) if _coincide(b, a, params.tolerancia_importe)),
            None,
        )
        if idx is None:
            no_en_app.append(b)
        else:
            conciliados.append(Conciliado(banco=b, app=pendientes_app.pop(idx)))

    totales = TotalesConciliacion(
        conciliado=round(sum(c.banco.importe for c in conciliados), 2),
        no_en_app=round(sum(b.importe for b in no_en_app), 2),
        no_en_banco=round(sum(a.importe for a in pendientes_app), 2),
        total_banco=round(sum(b.importe for b in banco), 2),
    )
    log.info(
        "Conciliacion: %d conciliados, %d solo en banco, %d solo en app",
        len(conciliados), len(no_en_app), len(pendientes_app),
    )
    return ReporteConciliacion(tuple(conciliados), tuple(no_en_app), tuple(pendientes_app), totales)


# ==========================================================
# Integración con el loader de estados de cuenta
# ==========================================================
def importar_estado_cuenta(path_or_file, params: Parametros = Parametros()) -> ImportacionEstadoCuenta:
    """Lee el archivo y devuelve los movimientos validos (y las filas omitidas)."""
    df = cargar_estado_cuenta(path_or_file)
    return parsear_estado_cuenta(df, largo_referencia=params.largo_referencia)


def conciliar_archivo(
    path_or_file,
    pagos: Iterable[Mapping],
    desde: date | datetime,
    hasta: date | datetime,
    propietarios: Mapping[str, str] | None = None,
    params: Parametros = Parametros(),
) -> tuple[ReporteConciliacion, ImportacionEstadoCuenta]:
    """Importa el estado de cuenta y lo concilia contra los pagos del rango.

    Un archivo sin las columnas requeridas aborta antes de conciliar.
    """
    importacion = importar_estado_cuenta(path_or_file, params)
    banco = filtrar_por_rango(importacion.movimientos, desde, hasta)
    app = pagos_app(pagos, desde, hasta, propietarios, largo_referencia=params.largo_referencia)
    return conciliar(banco, app, params), importacion
