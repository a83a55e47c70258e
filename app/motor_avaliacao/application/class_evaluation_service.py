"""Avaliação em lote de uma turma (pauta).

Responsabilidades:
- Validar a tabela de notas lançadas
- Calcular notas trimestrais e anuais por aluno e disciplina
- Decidir a progressão de cada aluno com o mesmo snapshot de política
- Montar a pauta em DataFrame
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from motor_avaliacao.application.grade_calculator import CalculadoraNotas
from motor_avaliacao.application.progression_engine import MotorProgressao
from motor_avaliacao.application.rounding import arredondar_nota
from motor_avaliacao.domain.errors import DetalheErro
from motor_avaliacao.domain.grades import ComponenteAvaliacao, NotaBruta, RegraAgregacaoAnual, ResultadoNotaFinal
from motor_avaliacao.domain.policy import PoliticaClasse
from motor_avaliacao.domain.progression import (
    EntradaProgressao,
    NotaDisciplina,
    RegistoFrequencia,
    ResultadoProgressao,
)
from motor_avaliacao.infrastructure.data.data_contract import CONTRATO_NOTAS
from motor_avaliacao.util.logger import logger


class ServicoPauta:
    """Serviço de avaliação de turma.

    Falhas de um aluno ou disciplina não interrompem os restantes.
    """

    def __init__(self, calculadora: CalculadoraNotas = None, motor: MotorProgressao = None):
        self.calculadora = calculadora or CalculadoraNotas()
        self.motor = motor or MotorProgressao()

    @staticmethod
    def _notas_por_aluno(df: pd.DataFrame) -> Dict[str, List[NotaBruta]]:
        if "REGISTADO_EM" in df.columns:
            df = df.assign(REGISTADO_EM=pd.to_datetime(df["REGISTADO_EM"], errors="coerce", utc=True))

        notas: Dict[str, List[NotaBruta]] = defaultdict(list)
        for registro in df.to_dict(orient="records"):
            registado_em = registro.get("REGISTADO_EM")
            notas[registro["ALUNO_ID"]].append(
                NotaBruta(
                    aluno_id=registro["ALUNO_ID"],
                    componente_id=registro["COMPONENTE_ID"],
                    trimestre=int(registro["TRIMESTRE"]),
                    valor=float(registro["VALOR"]),
                    registado_em=None if pd.isna(registado_em) else registado_em.to_pydatetime(),
                )
            )
        return notas

    @staticmethod
    def _frequencias_por_aluno(
        frequencias: Union[Dict[str, float], Iterable[RegistoFrequencia]], ano_lectivo: str
    ) -> Dict[str, float]:
        if isinstance(frequencias, dict):
            return dict(frequencias)
        return {r.aluno_id: r.percentagem for r in frequencias if r.ano_lectivo == ano_lectivo}

    def avaliar_turma(
        self,
        notas: pd.DataFrame,
        componentes: Sequence[ComponenteAvaliacao],
        disciplinas: Dict[str, str],
        frequencias: Union[Dict[str, float], Iterable[RegistoFrequencia]],
        politica: PoliticaClasse,
        ano_lectivo: str,
        regra_anual: Optional[RegraAgregacaoAnual] = None,
        versao_politica: Optional[str] = None,
    ) -> dict:
        """Avalia todos os alunos presentes na tabela de notas ou na frequência.

        Parâmetros:
        - notas (pd.DataFrame): colunas ALUNO_ID, COMPONENTE_ID, TRIMESTRE, VALOR
          e, opcionalmente, REGISTADO_EM
        - componentes (Sequence[ComponenteAvaliacao]): componentes de todas as disciplinas
        - disciplinas (dict): disciplina_id -> nome
        - frequencias (dict | Iterable[RegistoFrequencia]): frequência anual por aluno
        - politica (PoliticaClasse): snapshot usado para toda a turma
        - ano_lectivo (str): ano lectivo avaliado
        - regra_anual (RegraAgregacaoAnual | None): agregação dos trimestres

        Retorno:
        - dict: notas_trimestrais, notas_anuais, decisoes, erros e pauta (DataFrame)

        Exceções:
        - ValueError: quando a tabela de notas viola o contrato
        """
        regra = regra_anual or RegraAgregacaoAnual()
        frequencias = self._frequencias_por_aluno(frequencias, ano_lectivo)
        notas_validas = CONTRATO_NOTAS.validar(notas)
        por_aluno = self._notas_por_aluno(notas_validas)
        alunos = sorted(set(por_aluno) | set(frequencias))

        escalas = defaultdict(float)
        for componente in componentes:
            escalas[componente.disciplina_id] = max(escalas[componente.disciplina_id], componente.escala_maxima)

        notas_trimestrais: List[ResultadoNotaFinal] = []
        notas_anuais: List[ResultadoNotaFinal] = []
        decisoes: List[ResultadoProgressao] = []
        erros: List[DetalheErro] = []
        linhas = []

        for aluno_id in alunos:
            notas_aluno = por_aluno.get(aluno_id, [])
            disciplinas_aluno = []
            linha = {"ALUNO_ID": aluno_id}

            for disciplina_id, nome in disciplinas.items():
                trimestrais = {}
                erro_disciplina = None
                for trimestre in regra.trimestres:
                    resultado = self.calculadora.calcular(aluno_id, disciplina_id, trimestre, componentes, notas_aluno)
                    notas_trimestrais.append(resultado)
                    if resultado.resolvida:
                        trimestrais[trimestre] = resultado.nota
                    else:
                        erros.append(resultado.erro)
                        erro_disciplina = erro_disciplina or resultado.erro

                nota_anual = None
                if erro_disciplina is None:
                    anual = self.calculadora.agregar_anual(
                        aluno_id,
                        disciplina_id,
                        trimestrais,
                        regra,
                        escala_maxima=escalas[disciplina_id] or 20,
                        componentes=componentes,
                        notas=notas_aluno,
                    )
                    notas_anuais.append(anual)
                    if anual.resolvida:
                        nota_anual = anual.nota.nota_final
                    else:
                        erros.append(anual.erro)
                        erro_disciplina = anual.erro

                disciplinas_aluno.append(
                    NotaDisciplina(disciplina_id=disciplina_id, nome=nome, nota=nota_anual, erro=erro_disciplina)
                )
                linha[nome] = arredondar_nota(nota_anual) if nota_anual is not None else None

            entrada = EntradaProgressao(
                aluno_id=aluno_id,
                ano_lectivo=ano_lectivo,
                classe=politica.classe,
                disciplinas=disciplinas_aluno,
                frequencia=frequencias.get(aluno_id),
            )
            try:
                decisao = self.motor.decidir(entrada, politica, versao_politica=versao_politica)
            except ValueError as erro:
                logger.warning(f"Aluno {aluno_id} ignorado na pauta: {erro}")
                decisao = ResultadoProgressao(
                    aluno_id=aluno_id,
                    erro=DetalheErro(
                        categoria="ValidationError", codigo="InvalidInput", mensagem=str(erro), aluno_id=aluno_id
                    ),
                )
            decisoes.append(decisao)
            if decisao.erro is not None:
                erros.append(decisao.erro)

            linha["FREQUENCIA"] = entrada.frequencia
            if decisao.decisao is not None:
                linha["ESTADO"] = decisao.decisao.estado.value
                linha["MOTIVO"] = decisao.decisao.motivo.value
                linha["OBSERVACAO"] = decisao.decisao.observacao
                linha["TIPO_EXAME"] = decisao.decisao.tipo_exame.value if decisao.decisao.tipo_exame else None
            else:
                linha["ESTADO"] = "Avaliação Incompleta"
                linha["MOTIVO"] = decisao.erro.codigo
                linha["OBSERVACAO"] = decisao.erro.mensagem
                linha["TIPO_EXAME"] = None
            linhas.append(linha)

        logger.info(
            f"Pauta da {politica.classe}ª classe ({ano_lectivo}): {len(alunos)} alunos, "
            f"{sum(1 for d in decisoes if d.decisao is not None)} decisões, {len(erros)} erros."
        )

        return {
            "notas_trimestrais": notas_trimestrais,
            "notas_anuais": notas_anuais,
            "decisoes": decisoes,
            "erros": erros,
            "pauta": pd.DataFrame(linhas),
        }
