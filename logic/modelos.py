from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal, Union


ClaveCuenta = Literal["banco", "efectivoBs", "efectivoUsd", "cajaChica"]
Direccion = Literal["credito", "debito"]
TipoRegistro = Literal["pago", "gasto", "caja_chica"]

CUENTAS: tuple[ClaveCuenta, ...] = ("banco", "efectivoBs", "efectivoUsd", "cajaChica")


@dataclass(frozen=True)
class Transaccion:
    id: str                  # identidad de origen ("gasto:abc", "pago:#3", ...)
    fecha: datetime
    importe: float
    cuenta: ClaveCuenta
    direccion: Direccion
    descripcion: str = "N/A"
    referencia: str = "N/A"
    origen: TipoRegistro = "pago"

    @property
    def credito(self) -> float:
        return self.importe if self.direccion == "credito" else 0.0

    @property
    def debito(self) -> float:
        return self.importe if self.direccion == "debito" else 0.0


@dataclass(frozen=True)
class Periodo:
    desde: datetime   # primer instante del mes
    hasta: datetime   # ultimo instante del mes

    @property
    def id(self) -> str:
        return f"{self.desde.year:04d}-{self.desde.month:02d}"

    def contiene(self, fecha: datetime) -> bool:
        return self.desde <= fecha <= self.hasta


@dataclass(frozen=True)
class FilaLibro:
    fecha: datetime
    descripcion: str
    referencia: str
    credito: float
    debito: float
    saldo: float
    id: str = ""


@dataclass(frozen=True)
class Cuenta:
    clave: ClaveCuenta
    saldo_inicial: float
    transacciones: tuple[FilaLibro, ...]
    saldo_final: float
    total_credito: float
    total_debito: float


@dataclass(frozen=True)
class ResumenCajaChica:
    saldo_inicial: float = 0.0
    reposiciones: float = 0.0
    gastos: float = 0.0
    saldo_final: float = 0.0


@dataclass(frozen=True)
class CicloReposicion:
    id: str
    fecha: datetime
    monto: float
    saldo_previo: float
    total_gastos: float
    saldo_final: float
    gastos: tuple[Transaccion, ...] = ()


@dataclass(frozen=True)
class EstadoFinanciero:
    """Foto persistida del resultado de un periodo (``YYYY-MM``)."""

    periodo_id: str
    ingresos: tuple[dict, ...] = ()         # {"concepto", "monto"}
    egresos: tuple[dict, ...] = ()          # {"id", "dia", "concepto", "monto"}
    caja_chica: ResumenCajaChica = field(default_factory=ResumenCajaChica)
    saldos_anteriores: dict[str, float] = field(default_factory=dict)
    estado_final: dict[str, float] = field(default_factory=dict)
    disponibilidad_total: float = 0.0
    notas: str = ""
    creado_en: datetime | None = None

    def a_dict(self) -> dict:
        return {
            "id": self.periodo_id,
            "ingresos": [dict(i) for i in self.ingresos],
            "egresos": [dict(e) for e in self.egresos],
            "cajaChica": {
                "saldoInicial": self.caja_chica.saldo_inicial,
                "reposiciones": self.caja_chica.reposiciones,
                "gastos": self.caja_chica.gastos,
                "saldoFinal": self.caja_chica.saldo_final,
            },
            "saldosAnteriores": dict(self.saldos_anteriores),
            "estadoFinal": dict(self.estado_final),
            "disponibilidadTotal": self.disponibilidad_total,
            "notas": self.notas,
            "createdAt": self.creado_en,
        }

    @classmethod
    def desde_dict(cls, data: dict) -> "EstadoFinanciero":
        cc = data.get("cajaChica") or {}
        return cls(
            periodo_id=str(data["id"]),
            ingresos=tuple(dict(i) for i in data.get("ingresos") or []),
            egresos=tuple(dict(e) for e in data.get("egresos") or []),
            caja_chica=ResumenCajaChica(
                saldo_inicial=float(cc.get("saldoInicial", 0.0)),
                reposiciones=float(cc.get("reposiciones", 0.0)),
                gastos=float(cc.get("gastos", 0.0)),
                saldo_final=float(cc.get("saldoFinal", 0.0)),
            ),
            saldos_anteriores={k: float(v) for k, v in (data.get("saldosAnteriores") or {}).items()},
            estado_final={k: float(v) for k, v in (data.get("estadoFinal") or {}).items()},
            disponibilidad_total=float(data.get("disponibilidadTotal", 0.0)),
            notas=data.get("notas") or "",
            creado_en=data.get("createdAt"),
        )


@dataclass(frozen=True)
class MovimientoBancario:
    fecha: datetime
    importe: float
    referencia: str            # ultimos N caracteres, usada para conciliar
    referencia_original: str


@dataclass(frozen=True)
class PagoApp:
    id: str
    fecha: datetime
    referencia: str
    importe: float
    propietario: str = "Desconocido"


@dataclass(frozen=True)
class Conciliado:
    banco: MovimientoBancario
    app: PagoApp


@dataclass(frozen=True)
class SoloBanco:
    banco: MovimientoBancario


@dataclass(frozen=True)
class SoloApp:
    app: PagoApp


ResultadoConciliacion = Union[Conciliado, SoloBanco, SoloApp]


def dia(fecha: datetime | date) -> date:
    """Dia calendario de una fecha u hora."""
    return fecha.date() if isinstance(fecha, datetime) else fecha
