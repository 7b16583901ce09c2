from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Iterable, Mapping, Protocol

import yaml

from logic.errores import ErrorPersistencia
from logic.modelos import EstadoFinanciero


# ==============================
# Fuentes de registros
# ==============================
class FuenteRegistros(Protocol):
    def leer(self, condo_id: str, coleccion: str) -> Iterable[Mapping]: ...


class FuenteEnMemoria:
    """Colecciones por condominio: ``{condo_id: {coleccion: [registros]}}``."""

    def __init__(self, datos: Mapping[str, Mapping[str, list]] | None = None):
        self._datos: dict[str, dict[str, list]] = {
            condo: {col: list(regs) for col, regs in colecciones.items()}
            for condo, colecciones in (datos or {}).items()
        }

    def agregar(self, condo_id: str, coleccion: str, registro: Mapping) -> None:
        self._datos.setdefault(condo_id, {}).setdefault(coleccion, []).append(dict(registro))

    def leer(self, condo_id: str, coleccion: str) -> list[Mapping]:
        return [dict(r) for r in self._datos.get(condo_id, {}).get(coleccion, [])]


# ==============================
# Repositorios de estados financieros
# ==============================
class RepositorioEstados(Protocol):
    def obtener(self, condo_id: str, periodo_id: str) -> EstadoFinanciero | None: ...
    def guardar(self, condo_id: str, estado: EstadoFinanciero) -> None: ...
    def eliminar(self, condo_id: str, periodo_id: str) -> None: ...
    def listar(self, condo_id: str) -> list[EstadoFinanciero]: ...


class RepositorioEstadosMemoria:
    def __init__(self):
        self._docs: dict[str, dict[str, dict]] = {}

    def obtener(self, condo_id: str, periodo_id: str) -> EstadoFinanciero | None:
        doc = self._docs.get(condo_id, {}).get(periodo_id)
        return EstadoFinanciero.desde_dict(doc) if doc else None

    def guardar(self, condo_id: str, estado: EstadoFinanciero) -> None:
        # reemplazo del documento completo
        self._docs.setdefault(condo_id, {})[estado.periodo_id] = estado.a_dict()

    def eliminar(self, condo_id: str, periodo_id: str) -> None:
        self._docs.get(condo_id, {}).pop(periodo_id, None)

    def listar(self, condo_id: str) -> list[EstadoFinanciero]:
        return [EstadoFinanciero.desde_dict(d) for d in self._docs.get(condo_id, {}).values()]


_NOMBRE_SEGURO = re.compile(r"^[A-Za-z0-9_.-]+$")


class RepositorioEstadosYaml:
    """Un archivo YAML por condominio y periodo: ``<base>/<condo>/<YYYY-MM>.yaml``.

    La escritura va a un temporal que luego se renombra, asi nunca queda un
    archivo a medio escribir.
    """

    def __init__(self, base: str | Path):
        self.base = Path(base)

    def _ruta(self, condo_id: str, periodo_id: str) -> Path:
        for parte in (condo_id, periodo_id):
            if not _NOMBRE_SEGURO.match(parte) or parte in (".", ".."):
                raise ValueError(f"Identificador no valido para archivo: {parte!r}")
        return self.base / condo_id / f"{periodo_id}.yaml"

    def obtener(self, condo_id: str, periodo_id: str) -> EstadoFinanciero | None:
        ruta = self._ruta(condo_id, periodo_id)
        if not ruta.exists():
            return None
        with open(ruta, "r", encoding="utf-8") as f:
            return EstadoFinanciero.desde_dict(yaml.safe_load(f))

    def guardar(self, condo_id: str, estado: EstadoFinanciero) -> None:
        ruta = self._ruta(condo_id, estado.periodo_id)
        tmp_name = None
        try:
            ruta.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=ruta.parent, suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                yaml.safe_dump(estado.a_dict(), tmp, allow_unicode=True, sort_keys=False)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, ruta)
        except (OSError, yaml.YAMLError) as e:
            if tmp_name and os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise ErrorPersistencia(f"No se pudo guardar el estado {estado.periodo_id}: {e}") from e

    def eliminar(self, condo_id: str, periodo_id: str) -> None:
        ruta = self._ruta(condo_id, periodo_id)
        if ruta.exists():
            ruta.unlink()

    def listar(self, condo_id: str) -> list[EstadoFinanciero]:
        carpeta = self.base / condo_id
        if not carpeta.is_dir():
            return []
        out = []
        for ruta in sorted(carpeta.glob("*.yaml")):
            with open(ruta, "r", encoding="utf-8") as f:
                out.append(EstadoFinanciero.desde_dict(yaml.safe_load(f)))
        return out
