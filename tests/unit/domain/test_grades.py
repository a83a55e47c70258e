"""Testes dos modelos de componentes e notas."""

import pytest
from pydantic import ValidationError

from motor_avaliacao.domain.errors import DivisaoPorZero, NotaObrigatoriaEmFalta
from motor_avaliacao.domain.grades import ComponenteAvaliacao, NotaBruta, RegraAgregacaoAnual


def test_codigo_padrao_e_o_nome():
    assert ComponenteAvaliacao(id="1", disciplina_id="MAT", nome="P1").codigo == "P1"


def test_nome_com_espacos_exige_codigo():
    with pytest.raises(ValidationError):
        ComponenteAvaliacao(id="1", disciplina_id="MAT", nome="Prova 1")

    assert ComponenteAvaliacao(id="1", disciplina_id="MAT", nome="Prova 1", codigo="P1").codigo == "P1"


def test_calculado_exige_formula():
    with pytest.raises(ValidationError, match="sem fórmula"):
        ComponenteAvaliacao(id="mt", disciplina_id="MAT", nome="MT", calculado=True)


def test_componente_anual_lancado_e_rejeitado():
    with pytest.raises(ValidationError, match="Componente anual 'EX'"):
        ComponenteAvaliacao(id="ex", disciplina_id="POR", nome="EX", peso=50, tipo_calculo="anual")


def test_componente_anual_calculado_e_aceito():
    componente = ComponenteAvaliacao(
        id="mf", disciplina_id="POR", nome="MF", calculado=True, tipo_calculo="anual", formula="(T1 + T2 + T3) / 3"
    )

    assert componente.tipo_calculo == "anual"


def test_escala_invalida():
    with pytest.raises(ValidationError, match="Escala"):
        ComponenteAvaliacao(id="1", disciplina_id="MAT", nome="P1", escala_minima=20, escala_maxima=10)


def test_peso_fora_do_intervalo():
    with pytest.raises(ValidationError):
        ComponenteAvaliacao(id="1", disciplina_id="MAT", nome="P1", peso=120)


def test_nota_bruta_imutavel():
    nota = NotaBruta(aluno_id="A1", componente_id="p1", trimestre=1, valor=12)

    with pytest.raises(ValidationError):
        nota.valor = 20


def test_regra_anual_trimestres():
    assert RegraAgregacaoAnual().trimestres == [1, 2, 3]
    assert RegraAgregacaoAnual(pesos_trimestres={1: 0, 2: 1, 3: 1}).trimestres == [2, 3]
    assert RegraAgregacaoAnual(formula="(T1 + T3) / 2").trimestres == [1, 3]


@pytest.mark.parametrize("pesos", [{}, {4: 1}, {1: -1, 2: 1}, {1: 0, 2: 0}])
def test_regra_anual_pesos_invalidos(pesos):
    with pytest.raises(ValidationError):
        RegraAgregacaoAnual(pesos_trimestres=pesos)


def test_erro_para_detalhe_preserva_contexto():
    erro = NotaObrigatoriaEmFalta("em falta", componente="NPT", trimestre=2)
    erro.com_contexto(disciplina_id="POR", trimestre=3, aluno_id="A1")

    detalhe = erro.para_detalhe()

    assert detalhe.categoria == "ResolutionError"
    assert detalhe.codigo == "MissingRequiredMark"
    assert detalhe.trimestre == 2
    assert detalhe.disciplina_id == "POR"


def test_divisao_por_zero_guarda_subexpressao():
    erro = DivisaoPorZero("Divisão por zero", subexpressao="A / B", componente="C")

    assert erro.subexpressao == "A / B"
    assert erro.para_detalhe().categoria == "ComputationError"
