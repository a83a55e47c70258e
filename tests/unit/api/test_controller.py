"""Testes do controlador de avaliação."""

from unittest.mock import Mock

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from motor_avaliacao.api.controller import ControladorAvaliacao, obter_servico_avaliacao
from motor_avaliacao.application.evaluation_service import ServicoAvaliacao
from motor_avaliacao.domain.policy import ConjuntoPoliticas, conjunto_politicas_padrao


def _cliente(conjunto=None):
    repositorio = Mock()
    repositorio.obter_conjunto.return_value = conjunto or conjunto_politicas_padrao()
    auditoria = Mock()
    servico = ServicoAvaliacao(repositorio=repositorio, auditoria=auditoria)

    aplicacao = FastAPI()
    aplicacao.dependency_overrides[obter_servico_avaliacao] = lambda: servico
    aplicacao.include_router(ControladorAvaliacao().roteador, prefix="/api/v1")
    return TestClient(aplicacao), auditoria


def _componentes():
    return [
        {"id": "mac", "disciplina_id": "POR", "nome": "MAC", "peso": 40},
        {"id": "npt", "disciplina_id": "POR", "nome": "NPT", "peso": 60},
    ]


def _entrada(notas, classe=7, frequencia=90):
    nomes = ["Língua Portuguesa", "Matemática", "Física", "Química"]
    return {
        "aluno_id": "A1",
        "ano_lectivo": "2024/2025",
        "classe": classe,
        "frequencia": frequencia,
        "disciplinas": [
            {"disciplina_id": f"D{i + 1}", "nome": nome, "nota": nota} for i, (nome, nota) in enumerate(zip(nomes, notas))
        ],
    }


def test_validar_formula():
    cliente, _ = _cliente()

    resposta = cliente.post(
        "/api/v1/formulas/validate", json={"formula": "(P1 + P2) / 2", "componentes_disponiveis": ["P1"]}
    )

    assert resposta.status_code == 200
    assert resposta.json()["valida"] is False
    assert resposta.json()["mensagem"] == "Componentes não encontrados: P2"


def test_nota_final_com_rastro():
    cliente, auditoria = _cliente()
    pedido = {
        "aluno_id": "A1",
        "disciplina_id": "POR",
        "trimestre": 1,
        "componentes": _componentes(),
        "notas": [
            {"aluno_id": "A1", "componente_id": "mac", "trimestre": 1, "valor": 12},
            {"aluno_id": "A1", "componente_id": "npt", "trimestre": 1, "valor": 15},
        ],
    }

    resposta = cliente.post("/api/v1/grades/final", json=pedido)

    assert resposta.status_code == 200
    corpo = resposta.json()
    assert corpo["nota_final"] == pytest.approx(13.8)
    assert corpo["rastro"]["expressao_completa"] == "0.40×12 + 0.60×15 = 4.80 + 9.00 = 13.80"
    auditoria.registrar.assert_called_once()


def test_nota_final_erro_estruturado():
    cliente, auditoria = _cliente()
    pedido = {
        "aluno_id": "A1",
        "disciplina_id": "POR",
        "trimestre": 1,
        "componentes": _componentes(),
        "notas": [{"aluno_id": "A1", "componente_id": "mac", "trimestre": 1, "valor": 12}],
    }

    resposta = cliente.post("/api/v1/grades/final", json=pedido)

    assert resposta.status_code == 422
    detalhe = resposta.json()["detail"]
    assert detalhe["codigo"] == "MissingRequiredMark"
    assert detalhe["componente"] == "NPT"
    auditoria.registrar.assert_not_called()


def test_nota_anual():
    cliente, _ = _cliente()

    resposta = cliente.post(
        "/api/v1/grades/annual",
        json={"aluno_id": "A1", "disciplina_id": "POR", "notas_trimestrais": {"1": 10, "2": 12, "3": 14}},
    )

    assert resposta.status_code == 200
    assert resposta.json()["nota_final"] == pytest.approx(12)
    assert resposta.json()["trimestre"] is None


def test_nota_anual_com_componente_anual():
    cliente, _ = _cliente()
    componentes = _componentes() + [
        {"id": "ex", "disciplina_id": "POR", "nome": "EX", "trimestre": 3},
        {
            "id": "mf",
            "disciplina_id": "POR",
            "nome": "MF",
            "calculado": True,
            "tipo_calculo": "anual",
            "formula": "(T1 + T2 + T3 + EX) / 4",
        },
    ]

    resposta = cliente.post(
        "/api/v1/grades/annual",
        json={
            "aluno_id": "A1",
            "disciplina_id": "POR",
            "notas_trimestrais": {"1": 10, "2": 12, "3": 14},
            "componentes": componentes,
            "notas": [{"aluno_id": "A1", "componente_id": "ex", "trimestre": 3, "valor": 16}],
        },
    )

    assert resposta.status_code == 200
    assert resposta.json()["nota_final"] == pytest.approx(13)


def test_nota_anual_rejeita_componente_anual_lancado():
    cliente, _ = _cliente()
    componentes = _componentes() + [{"id": "ex", "disciplina_id": "POR", "nome": "EX", "peso": 50, "tipo_calculo": "anual"}]

    resposta = cliente.post(
        "/api/v1/grades/annual",
        json={
            "aluno_id": "A1",
            "disciplina_id": "POR",
            "notas_trimestrais": {"1": 10, "2": 12, "3": 14},
            "componentes": componentes,
        },
    )

    assert resposta.status_code == 422


def test_decidir_progressao():
    cliente, auditoria = _cliente()

    resposta = cliente.post("/api/v1/progression/decide", json=_entrada([12, 12, 8, 13]))

    assert resposta.status_code == 200
    corpo = resposta.json()
    assert corpo["estado"] == "Matrícula Condicional"
    assert corpo["motivo"] == "ConditionalTransition"
    assert corpo["tipo_exame"] == "Extraordinário"
    assert corpo["versao_politica"] == conjunto_politicas_padrao().versao
    auditoria.registrar.assert_called_once()


def test_decidir_dados_incompletos():
    cliente, _ = _cliente()

    resposta = cliente.post("/api/v1/progression/decide", json=_entrada([12, None, 8, 13]))

    assert resposta.status_code == 422
    assert resposta.json()["detail"]["codigo"] == "IncompleteGradeData"


def test_decidir_classe_sem_politica():
    conjunto = ConjuntoPoliticas(versao="parcial", politicas=(conjunto_politicas_padrao().obter(7),))
    cliente, _ = _cliente(conjunto)

    resposta = cliente.post("/api/v1/progression/decide", json=_entrada([12, 12], classe=8))

    assert resposta.status_code == 400
    assert "8ª classe" in resposta.json()["detail"]


def test_exame_extraordinario():
    cliente, _ = _cliente()
    entrada = _entrada([12, 12, 8, 13])
    anterior = cliente.post("/api/v1/progression/decide", json=entrada).json()

    resposta = cliente.post(
        "/api/v1/progression/supplementary-exam",
        json={"entrada": entrada, "decisao_anterior": anterior, "notas_exame": {"D3": 11}},
    )

    assert resposta.status_code == 200
    assert resposta.json()["estado"] == "Transita"
    assert resposta.json()["substitui_decisao_id"] == anterior["decisao_id"]


def test_exame_para_decisao_nao_condicional():
    cliente, _ = _cliente()
    entrada = _entrada([12, 12, 12, 13])
    anterior = cliente.post("/api/v1/progression/decide", json=entrada).json()

    resposta = cliente.post(
        "/api/v1/progression/supplementary-exam",
        json={"entrada": entrada, "decisao_anterior": anterior, "notas_exame": {}},
    )

    assert resposta.status_code == 400


def test_listar_politicas():
    cliente, _ = _cliente()

    resposta = cliente.get("/api/v1/policies")

    assert resposta.status_code == 200
    assert len(resposta.json()["politicas"]) == 13


def test_obter_servico_sem_politicas(monkeypatch):
    from motor_avaliacao.api import controller as modulo_controlador

    servico = Mock()
    servico.listar_politicas.side_effect = FileNotFoundError("missing")
    monkeypatch.setattr(modulo_controlador, "ServicoAvaliacao", lambda: servico)

    with pytest.raises(HTTPException) as erro:
        obter_servico_avaliacao()

    assert erro.value.status_code == 503
