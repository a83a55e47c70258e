"""Testes da porta de frequência."""

from motor_avaliacao.application.attendance_gate import PortaoFrequencia
from motor_avaliacao.config.settings import Configuracoes


def test_limite_exato_passa():
    assert PortaoFrequencia.verificar(66.67) is True


def test_abaixo_do_limite_falha():
    assert PortaoFrequencia.verificar(66.66) is False


def test_minimo_explicito():
    assert PortaoFrequencia.verificar(70, minimo=75) is False
    assert PortaoFrequencia.verificar(75, minimo=75) is True


def test_minimo_configurado(monkeypatch):
    monkeypatch.setattr(Configuracoes, "FREQUENCIA_MINIMA", 80.0)

    assert PortaoFrequencia.verificar(79.9) is False
    assert PortaoFrequencia.verificar(80) is True
