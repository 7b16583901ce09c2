from __future__ import annotations
import yaml
from dataclasses import dataclass
from pathlib import Path


_RAIZ = Path(__file__).resolve().parent.parent


@dataclass(frozen=True)
class ContabilidadConfig:
    estados_aprobados: list[str]
    arrastre: str
    tasa_usd: float


@dataclass(frozen=True)
class ConciliacionConfig:
    tolerancia_importe: float
    largo_referencia: int
    columnas_requeridas: list[str]
    formato_fecha: str


@dataclass(frozen=True)
class LecturaConfig:
    csv_encodings: list[str]
    csv_separadores: list[str]


@dataclass(frozen=True)
class LoggingConfig:
    nivel: str
    formato: str


@dataclass(frozen=True)
class Config:
    contabilidad: ContabilidadConfig
    conciliacion: ConciliacionConfig
    lectura: LecturaConfig
    logging: LoggingConfig


def load_config(path: str | Path = "config.yaml") -> Config:
    path = Path(path)
    if not path.is_absolute() and not path.exists():
        path = _RAIZ / path
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    cont = ContabilidadConfig(**data["contabilidad"])
    conc = ConciliacionConfig(**data["conciliacion"])
    lec = LecturaConfig(**data["lectura"])
    log = LoggingConfig(**data["logging"])

    if cont.arrastre not in ("ultimo_creado", "mes_anterior"):
        raise ValueError(f"Modo de arrastre desconocido: {cont.arrastre}")

    return Config(contabilidad=cont, conciliacion=conc, lectura=lec, logging=log)
