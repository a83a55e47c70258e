"""Testes das observações padronizadas."""

from motor_avaliacao.application.standard_notes import GeradorObservacao


def test_aprovacao_plena():
    texto = GeradorObservacao.aprovacao_plena(10, 87.5)

    assert texto == (
        "Transitou por ter obtido classificação igual ou superior a 10 valores "
        "em todas as disciplinas e frequência de 87,50%."
    )


def test_condicional_lista_disciplinas():
    texto = GeradorObservacao.condicional(7, 10, ["Física", "Química"])

    assert texto.startswith("Transitou condicionalmente com 2 disciplina(s) entre 7 e 9 valores: Física e Química.")
    assert "Exame Extraordinário" in texto


def test_abaixo_limiar_com_tres_disciplinas():
    texto = GeradorObservacao.abaixo_limiar(10, ["Física", "Química", "Biologia"])

    assert texto == (
        "Não transitou por ter obtido classificação inferior a 10 valores "
        "em 3 disciplina(s): Física, Química e Biologia."
    )


def test_frequencia_insuficiente():
    texto = GeradorObservacao.frequencia_insuficiente(60, 66.67)

    assert texto == "Não transitou por frequência insuficiente (60,00%, inferior ao mínimo de 66,67%)."


def test_disciplinas_obrigatorias():
    texto = GeradorObservacao.disciplinas_obrigatorias(10, ["Língua Portuguesa", "Matemática"])

    assert "simultaneamente em Língua Portuguesa e Matemática" in texto
