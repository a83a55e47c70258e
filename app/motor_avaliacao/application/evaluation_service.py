"""Serviço de avaliação exposto pela API.

Responsabilidades:
- Resolver a política da classe a partir do conjunto ativo
- Invocar a calculadora e o motor de progressão
- Registrar resultados no log de auditoria
"""

from motor_avaliacao.application.formula_evaluator import AvaliadorExpressao
from motor_avaliacao.application.grade_calculator import CalculadoraNotas
from motor_avaliacao.application.progression_engine import MotorProgressao
from motor_avaliacao.domain.grades import ExpressaoFormula, ResultadoNotaFinal
from motor_avaliacao.domain.policy import ConjuntoPoliticas, PoliticaClasse
from motor_avaliacao.domain.progression import EntradaProgressao, ResultadoProgressao
from motor_avaliacao.domain.requests import (
    PedidoExameExtraordinario,
    PedidoNotaAnual,
    PedidoNotaFinal,
    PedidoValidacaoFormula,
)
from motor_avaliacao.infrastructure.logging.audit_logger import LoggerAuditoria
from motor_avaliacao.infrastructure.policy.policy_repository import RepositorioPoliticas


class ServicoAvaliacao:
    """Fachada da aplicação sobre o motor (o motor em si não escreve nada).

    Responsabilidades:
    - Tirar um snapshot de políticas por pedido
    - Persistir decisões e notas no log de auditoria
    """

    def __init__(self, repositorio: RepositorioPoliticas = None, auditoria: LoggerAuditoria = None):
        self.repositorio = repositorio or RepositorioPoliticas()
        self.auditoria = auditoria or LoggerAuditoria()

    def listar_politicas(self) -> ConjuntoPoliticas:
        return self.repositorio.obter_conjunto()

    def _politica(self, classe: int) -> tuple:
        """Retorna (política, versão) do snapshot ativo.

        Exceções:
        - KeyError: classe sem política configurada
        """
        conjunto = self.repositorio.obter_conjunto()
        politica: PoliticaClasse = conjunto.obter(classe)
        return politica, conjunto.versao

    @staticmethod
    def validar_formula(pedido: PedidoValidacaoFormula) -> ExpressaoFormula:
        return AvaliadorExpressao.validar(pedido.formula, pedido.componentes_disponiveis)

    def calcular_nota_final(self, pedido: PedidoNotaFinal) -> ResultadoNotaFinal:
        resultado = CalculadoraNotas.calcular(
            pedido.aluno_id, pedido.disciplina_id, pedido.trimestre, pedido.componentes, pedido.notas
        )
        if resultado.resolvida:
            self.auditoria.registrar("nota_final", resultado.nota)
        return resultado

    def calcular_nota_anual(self, pedido: PedidoNotaAnual) -> ResultadoNotaFinal:
        resultado = CalculadoraNotas.agregar_anual(
            pedido.aluno_id,
            pedido.disciplina_id,
            pedido.notas_trimestrais,
            pedido.regra,
            escala_maxima=pedido.escala_maxima,
            componentes=pedido.componentes,
            notas=pedido.notas,
        )
        if resultado.resolvida:
            self.auditoria.registrar("nota_anual", resultado.nota)
        return resultado

    def decidir(self, entrada: EntradaProgressao) -> ResultadoProgressao:
        """Decide a progressão com a política ativa da classe do aluno.

        Exceções:
        - KeyError: classe sem política
        - ValueError: entrada incompatível com a política
        """
        politica, versao = self._politica(entrada.classe)
        resultado = MotorProgressao.decidir(entrada, politica, versao_politica=versao)
        if resultado.decisao is not None:
            self.auditoria.registrar("decisao", resultado.decisao)
        return resultado

    def reavaliar_exame(self, pedido: PedidoExameExtraordinario) -> ResultadoProgressao:
        politica, versao = self._politica(pedido.entrada.classe)
        resultado = MotorProgressao.reavaliar_com_exame(
            pedido.entrada, politica, pedido.decisao_anterior, pedido.notas_exame, versao_politica=versao
        )
        if resultado.decisao is not None:
            self.auditoria.registrar("decisao", resultado.decisao)
        return resultado
