from datetime import datetime

import pytest

from infra.almacen import RepositorioEstadosMemoria, RepositorioEstadosYaml
from logic.errores import ErrorPersistencia
from logic.estados import AlmacenEstados, construir_estado, disponibilidad_total
from logic.modelos import EstadoFinanciero


def test_obtener_sintetiza_si_no_hay_guardado(fuente):
    almacen = AlmacenEstados(RepositorioEstadosMemoria(), fuente)
    estado = almacen.obtener("condo-1", "2024-03")
    assert estado.periodo_id == "2024-03"
    assert estado.creado_en is None
    assert estado.estado_final["banco"] == pytest.approx(270.0)
    assert estado.saldos_anteriores["banco"] == pytest.approx(100.0)
    assert estado.ingresos[0] == {"concepto": "Recaudación Bancaria", "monto": 250.0}
    assert [e["id"] for e in estado.egresos] == ["g1", "g2"]
    assert estado.egresos[0]["dia"] == "07"
    assert estado.caja_chica.saldo_final == pytest.approx(35.0)
    # sintetizar no guarda
    assert almacen.historial("condo-1") == []


def test_obtener_devuelve_el_guardado(fuente):
    almacen = AlmacenEstados(RepositorioEstadosMemoria(), fuente)
    guardado = almacen.guardar("condo-1", EstadoFinanciero("2024-03", notas="cerrado", estado_final={"banco": 1.0}))
    assert guardado.creado_en is not None
    assert almacen.obtener("condo-1", "2024-03") == guardado


def test_guardar_reemplaza_el_mismo_periodo(fuente):
    almacen = AlmacenEstados(RepositorioEstadosMemoria(), fuente)
    almacen.guardar("condo-1", EstadoFinanciero("2024-03", notas="v1"))
    almacen.guardar("condo-1", EstadoFinanciero("2024-03", notas="v2"))
    historial = almacen.historial("condo-1")
    assert len(historial) == 1 and historial[0].notas == "v2"


def test_arrastre_continuo_entre_meses(fuente):
    almacen = AlmacenEstados(RepositorioEstadosMemoria(), fuente)
    febrero = almacen.guardar("condo-1", almacen.obtener("condo-1", "2024-02"))
    marzo = almacen.obtener("condo-1", "2024-03")
    for cuenta, saldo in febrero.estado_final.items():
        assert marzo.saldos_anteriores[cuenta] == pytest.approx(saldo)


def test_arrastre_usa_el_ultimo_creado_aunque_no_sea_el_mes_anterior(fuente):
    almacen = AlmacenEstados(RepositorioEstadosMemoria(), fuente)
    almacen.guardar("condo-1", EstadoFinanciero("2024-02", estado_final={"banco": 100.0},
                                                creado_en=datetime(2024, 4, 1)))
    almacen.guardar("condo-1", EstadoFinanciero("2024-01", estado_final={"banco": 5.0},
                                                creado_en=datetime(2024, 4, 2)))
    marzo = almacen.obtener("condo-1", "2024-03")
    assert marzo.saldos_anteriores["banco"] == pytest.approx(5.0)
    assert marzo.estado_final["banco"] == pytest.approx(5.0 + 250.0 - 80.0)


def test_arrastre_por_mes_anterior_es_opcional(fuente):
    almacen = AlmacenEstados(RepositorioEstadosMemoria(), fuente, modo_arrastre="mes_anterior")
    almacen.guardar("condo-1", EstadoFinanciero("2024-02", estado_final={"banco": 100.0},
                                                creado_en=datetime(2024, 4, 1)))
    almacen.guardar("condo-1", EstadoFinanciero("2024-01", estado_final={"banco": 5.0},
                                                creado_en=datetime(2024, 4, 2)))
    marzo = almacen.obtener("condo-1", "2024-03")
    assert marzo.saldos_anteriores["banco"] == pytest.approx(100.0)


def test_historial_ordenado_por_creacion(fuente):
    almacen = AlmacenEstados(RepositorioEstadosMemoria(), fuente)
    almacen.guardar("condo-1", EstadoFinanciero("2024-03", creado_en=datetime(2024, 4, 1)))
    almacen.guardar("condo-1", EstadoFinanciero("2024-01", creado_en=datetime(2024, 4, 5)))
    assert [e.periodo_id for e in almacen.historial("condo-1")] == ["2024-01", "2024-03"]
    almacen.eliminar("condo-1", "2024-01")
    assert [e.periodo_id for e in almacen.historial("condo-1")] == ["2024-03"]


def test_disponibilidad_total_con_tasa():
    final = {"banco": 100.0, "efectivoBs": 10.0, "efectivoUsd": 2.0, "cajaChica": 5.0}
    assert disponibilidad_total(final) == pytest.approx(117.0)
    assert disponibilidad_total(final, tasa_usd=36.5) == pytest.approx(188.0)


def test_construir_estado_con_notas(fuente):
    almacen = AlmacenEstados(RepositorioEstadosMemoria(), fuente)
    estado = construir_estado(almacen.calcular("condo-1", "2024-03"), notas="sin novedad")
    assert estado.notas == "sin novedad"
    assert estado.disponibilidad_total == pytest.approx(sum(estado.estado_final.values()))


def test_repositorio_yaml_ida_y_vuelta(tmp_path, fuente):
    almacen = AlmacenEstados(RepositorioEstadosYaml(tmp_path), fuente)
    guardado = almacen.guardar("condo-1", almacen.obtener("condo-1", "2024-03"))
    leido = almacen.obtener("condo-1", "2024-03")
    assert leido == guardado
    assert (tmp_path / "condo-1" / "2024-03.yaml").exists()
    assert list((tmp_path / "condo-1").glob("*.tmp")) == []


def test_repositorio_yaml_falla_sin_archivo_parcial(tmp_path, monkeypatch):
    repo = RepositorioEstadosYaml(tmp_path)

    def falla(*args, **kwargs):
        raise OSError("disco lleno")

    monkeypatch.setattr("infra.almacen.os.replace", falla)
    with pytest.raises(ErrorPersistencia):
        repo.guardar("condo-1", EstadoFinanciero("2024-03", creado_en=datetime(2024, 4, 1)))
    assert list((tmp_path / "condo-1").iterdir()) == []


def test_repositorio_yaml_rechaza_rutas(tmp_path):
    with pytest.raises(ValueError):
        RepositorioEstadosYaml(tmp_path).obtener("../otro", "2024-03")
