"""Controlador de avaliação da API.

Responsabilidades:
- Definir rotas de fórmulas, notas e progressão
- Resolver dependências do serviço de avaliação
- Traduzir erros em respostas HTTP
"""

from fastapi import APIRouter, Depends, HTTPException

from motor_avaliacao.application.evaluation_service import ServicoAvaliacao
from motor_avaliacao.domain.errors import DetalheErro
from motor_avaliacao.domain.progression import EntradaProgressao, ResultadoProgressao
from motor_avaliacao.domain.requests import (
    PedidoExameExtraordinario,
    PedidoNotaAnual,
    PedidoNotaFinal,
    PedidoValidacaoFormula,
)


def obter_servico_avaliacao():
    """Dependência para obter uma instância do serviço de avaliação.

    Retorno:
    - ServicoAvaliacao: instância pronta para uso

    Exceções:
    - HTTPException: quando o conjunto de políticas não pode ser carregado
    """
    servico = ServicoAvaliacao()
    try:
        servico.listar_politicas()
    except (FileNotFoundError, ValueError) as erro:
        raise HTTPException(status_code=503, detail=f"Políticas de transição indisponíveis. {str(erro)}")
    return servico


def _erro_estruturado(erro: DetalheErro):
    raise HTTPException(status_code=422, detail=erro.model_dump())


def _mensagem(erro: Exception) -> str:
    return erro.args[0] if isinstance(erro, KeyError) and erro.args else str(erro)


class ControladorAvaliacao:
    """Controlador de avaliação.

    Responsabilidades:
    - Registrar rotas do motor de avaliação
    - Devolver erros do motor como payload estruturado (422)
    """

    def __init__(self):
        self.roteador = APIRouter()
        self._registrar_rotas()

    def _registrar_rotas(self):
        self.roteador.add_api_route(
            path="/formulas/validate",
            endpoint=self._validar_formula,
            methods=["POST"],
            response_model=dict,
            summary="Validação de fórmula de componente calculado",
        )
        self.roteador.add_api_route(
            path="/grades/final",
            endpoint=self._calcular_nota_final,
            methods=["POST"],
            response_model=dict,
            summary="Nota trimestral com rastro de cálculo",
        )
        self.roteador.add_api_route(
            path="/grades/annual",
            endpoint=self._calcular_nota_anual,
            methods=["POST"],
            response_model=dict,
            summary="Nota anual a partir das notas trimestrais",
        )
        self.roteador.add_api_route(
            path="/progression/decide",
            endpoint=self._decidir,
            methods=["POST"],
            response_model=dict,
            summary="Decisão de transição do aluno",
        )
        self.roteador.add_api_route(
            path="/progression/supplementary-exam",
            endpoint=self._reavaliar_exame,
            methods=["POST"],
            response_model=dict,
            summary="Nova decisão após Exame Extraordinário",
        )
        self.roteador.add_api_route(
            path="/policies",
            endpoint=self._listar_politicas,
            methods=["GET"],
            response_model=dict,
        )

    @staticmethod
    async def _validar_formula(pedido: PedidoValidacaoFormula):
        return ServicoAvaliacao.validar_formula(pedido).model_dump()

    @staticmethod
    async def _calcular_nota_final(
        pedido: PedidoNotaFinal, servico: ServicoAvaliacao = Depends(obter_servico_avaliacao)
    ):
        """Calcula a nota trimestral.

        Exceções:
        - HTTPException: 422 com o erro do motor; 400 para entrada inválida
        """
        try:
            resultado = servico.calcular_nota_final(pedido)
        except (ValueError, TypeError, KeyError) as erro:
            raise HTTPException(status_code=400, detail=_mensagem(erro))
        if not resultado.resolvida:
            _erro_estruturado(resultado.erro)
        return resultado.nota.model_dump(mode="json")

    @staticmethod
    async def _calcular_nota_anual(
        pedido: PedidoNotaAnual, servico: ServicoAvaliacao = Depends(obter_servico_avaliacao)
    ):
        try:
            resultado = servico.calcular_nota_anual(pedido)
        except (ValueError, TypeError, KeyError) as erro:
            raise HTTPException(status_code=400, detail=_mensagem(erro))
        if not resultado.resolvida:
            _erro_estruturado(resultado.erro)
        return resultado.nota.model_dump(mode="json")

    @staticmethod
    def _decisao_ou_erro(resultado: ResultadoProgressao) -> dict:
        if resultado.incompleto:
            _erro_estruturado(resultado.erro)
        return resultado.decisao.model_dump(mode="json")

    @staticmethod
    async def _decidir(entrada: EntradaProgressao, servico: ServicoAvaliacao = Depends(obter_servico_avaliacao)):
        """Decide Transita, Matrícula Condicional ou Não Transita.

        Exceções:
        - HTTPException: 422 para avaliação incompleta; 400 para classe sem política
        """
        try:
            resultado = servico.decidir(entrada)
        except (ValueError, TypeError, KeyError) as erro:
            raise HTTPException(status_code=400, detail=_mensagem(erro))
        return ControladorAvaliacao._decisao_ou_erro(resultado)

    @staticmethod
    async def _reavaliar_exame(
        pedido: PedidoExameExtraordinario, servico: ServicoAvaliacao = Depends(obter_servico_avaliacao)
    ):
        try:
            resultado = servico.reavaliar_exame(pedido)
        except (ValueError, TypeError, KeyError) as erro:
            raise HTTPException(status_code=400, detail=_mensagem(erro))
        return ControladorAvaliacao._decisao_ou_erro(resultado)

    @staticmethod
    async def _listar_politicas(servico: ServicoAvaliacao = Depends(obter_servico_avaliacao)):
        return servico.listar_politicas().model_dump(mode="json")
