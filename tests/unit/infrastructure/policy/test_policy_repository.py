"""Testes do repositório de políticas."""

import json

import pytest

from motor_avaliacao.config.settings import Configuracoes
from motor_avaliacao.domain.policy import VERSAO_REFERENCIA, conjunto_politicas_padrao
from motor_avaliacao.infrastructure.policy.policy_repository import RepositorioPoliticas


@pytest.fixture(autouse=True)
def resetar_repositorio(monkeypatch):
    monkeypatch.setattr(Configuracoes, "POLITICAS_PATH", None)
    RepositorioPoliticas._instancia = None
    yield
    RepositorioPoliticas._instancia = None


def _gravar(caminho, dados):
    caminho.write_text(json.dumps(dados, ensure_ascii=False), encoding="utf-8")
    return str(caminho)


def test_singleton():
    assert RepositorioPoliticas() is RepositorioPoliticas()


def test_sem_override_usa_referencia():
    conjunto = RepositorioPoliticas().carregar()

    assert conjunto.versao == VERSAO_REFERENCIA
    assert conjunto.obter(7).piso_condicional == 7


def test_carregar_de_json(tmp_path):
    dados = conjunto_politicas_padrao().model_dump(mode="json")
    dados["versao"] = "provincia-2026"
    dados["politicas"][6]["frequencia_minima"] = 75

    conjunto = RepositorioPoliticas().carregar(_gravar(tmp_path / "politicas.json", dados))

    assert conjunto.versao == "provincia-2026"
    assert conjunto.obter(7).frequencia_minima == 75


def test_caminho_configurado_no_ambiente(monkeypatch, tmp_path):
    dados = conjunto_politicas_padrao().model_dump(mode="json")
    dados["versao"] = "via-ambiente"
    monkeypatch.setattr(Configuracoes, "POLITICAS_PATH", _gravar(tmp_path / "p.json", dados))

    assert RepositorioPoliticas().obter_conjunto().versao == "via-ambiente"


def test_arquivo_inexistente(tmp_path):
    with pytest.raises(FileNotFoundError):
        RepositorioPoliticas().carregar(str(tmp_path / "nao_existe.json"))


def test_arquivo_invalido(tmp_path):
    dados = conjunto_politicas_padrao().model_dump(mode="json")
    dados["politicas"][8]["permite_condicional"] = True

    with pytest.raises(ValueError, match="inválido"):
        RepositorioPoliticas().carregar(_gravar(tmp_path / "politicas.json", dados))


def test_reutiliza_conjunto_em_memoria(tmp_path):
    repositorio = RepositorioPoliticas()
    primeiro = repositorio.carregar()

    assert repositorio.carregar() is primeiro
    assert repositorio.carregar(force=True) is not primeiro


def test_limpar():
    repositorio = RepositorioPoliticas()
    repositorio.carregar()
    repositorio.limpar()

    assert repositorio._conjunto is None
