"""Motor de regras de progressão (transição de classe).

Responsabilidades:
- Aplicar a porta de frequência antes de qualquer regra de notas
- Avaliar as regras por ordem fixa, cada uma terminal
- Gerar a observação padronizada e os indicadores de arredondamento
- Reavaliar alunos em matrícula condicional após o exame extraordinário

Os limiares vêm sempre da PoliticaClasse recebida; o motor não lê estado global.
"""

import unicodedata
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence

from motor_avaliacao.application.attendance_gate import PortaoFrequencia
from motor_avaliacao.application.rounding import arredondamento_altera, arredondar_nota
from motor_avaliacao.application.standard_notes import GeradorObservacao
from motor_avaliacao.domain.errors import DadosIncompletos
from motor_avaliacao.domain.policy import PoliticaClasse
from motor_avaliacao.domain.progression import (
    DecisaoProgressao,
    EntradaProgressao,
    EstadoTransicao,
    MotivoDecisao,
    NotaDisciplina,
    ResultadoProgressao,
    TipoExame,
)
from motor_avaliacao.util.logger import FabricaLogger

logger = FabricaLogger.obter("progressao")


def _normalizar(nome: str) -> str:
    sem_acentos = unicodedata.normalize("NFKD", nome)
    sem_acentos = "".join(c for c in sem_acentos if not unicodedata.combining(c))
    return " ".join(sem_acentos.lower().split())


def _nota(valor: float, arredondar: bool) -> float:
    return arredondar_nota(valor) if arredondar else valor


class MotorProgressao:
    """Decide Transita, Matrícula Condicional ou Não Transita por aluno e ano.

    Ordem das regras:
    1. Frequência insuficiente
    2. Aprovação plena
    3. Classe sem transição condicional
    4. Disciplina abaixo do piso condicional
    5. Excesso de disciplinas na faixa condicional
    6. Disciplinas nucleares simultaneamente na faixa condicional
    7. Transição condicional
    """

    @staticmethod
    def eh_nuclear(disciplina: NotaDisciplina, politica: PoliticaClasse) -> bool:
        """Disciplina nuclear pelo id configurado ou, sem ids, por nome que contenha
        um dos fragmentos configurados (ex.: "Língua Portuguesa e Literatura")."""
        if politica.disciplinas_obrigatorias:
            return disciplina.disciplina_id in politica.disciplinas_obrigatorias
        nome = _normalizar(disciplina.nome)
        return any(_normalizar(fragmento) in nome for fragmento in politica.nomes_obrigatorios)

    @staticmethod
    def decidir(
        entrada: EntradaProgressao,
        politica: PoliticaClasse,
        versao_politica: Optional[str] = None,
        decidido_em: Optional[datetime] = None,
    ) -> ResultadoProgressao:
        """Produz exatamente uma decisão ou uma recusa por dados incompletos.

        Parâmetros:
        - entrada (EntradaProgressao): notas anuais e frequência do aluno
        - politica (PoliticaClasse): regras da classe (snapshot imutável)
        - versao_politica (str | None): versão do conjunto de políticas
        - decidido_em (datetime | None): instante da decisão

        Retorno:
        - ResultadoProgressao: decisão ou erro IncompleteGradeData

        Exceções:
        - ValueError: classe da entrada diferente da política, ou nota acima da escala
        """
        MotorProgressao._validar_compatibilidade(entrada, politica)
        try:
            decisao = MotorProgressao._decidir(entrada, politica, versao_politica, decidido_em)
            sem_arredondamento = MotorProgressao._decidir(
                entrada, politica, versao_politica, decidido_em, arredondar=False
            )
            decisao = MotorProgressao._marcar_influencia(decisao, sem_arredondamento)
        except DadosIncompletos as erro:
            erro.com_contexto(aluno_id=entrada.aluno_id)
            logger.warning(f"Decisão recusada para aluno {entrada.aluno_id}: {erro.mensagem}")
            return ResultadoProgressao(aluno_id=entrada.aluno_id, erro=erro.para_detalhe())

        logger.info(
            f"Aluno {entrada.aluno_id} ({entrada.classe}ª classe, {entrada.ano_lectivo}): "
            f"{decisao.estado.value} [{decisao.motivo.value}]"
        )
        return ResultadoProgressao(aluno_id=entrada.aluno_id, decisao=decisao)

    @staticmethod
    def reavaliar_com_exame(
        entrada: EntradaProgressao,
        politica: PoliticaClasse,
        decisao_anterior: DecisaoProgressao,
        notas_exame: Dict[str, float],
        versao_politica: Optional[str] = None,
        decidido_em: Optional[datetime] = None,
    ) -> ResultadoProgressao:
        """Nova decisão após o Exame Extraordinário de um aluno em matrícula condicional.

        A nota do exame (arredondada) substitui a nota anual das disciplinas em
        risco. O resultado é sempre terminal: Transita ou Não Transita.

        Exceções:
        - ValueError: decisão anterior não condicional ou de outro aluno
        """
        if decisao_anterior.estado != EstadoTransicao.MATRICULA_CONDICIONAL:
            raise ValueError(
                f"Exame extraordinário só se aplica a Matrícula Condicional "
                f"(decisão {decisao_anterior.decisao_id} é {decisao_anterior.estado.value})."
            )
        if decisao_anterior.aluno_id != entrada.aluno_id:
            raise ValueError("Decisão anterior pertence a outro aluno.")
        MotorProgressao._validar_compatibilidade(entrada, politica)

        try:
            decisao = MotorProgressao._decidir_exame(
                entrada, politica, decisao_anterior, notas_exame, versao_politica, decidido_em
            )
            sem_arredondamento = MotorProgressao._decidir_exame(
                entrada, politica, decisao_anterior, notas_exame, versao_politica, decidido_em, arredondar=False
            )
            decisao = MotorProgressao._marcar_influencia(decisao, sem_arredondamento)
        except DadosIncompletos as erro:
            erro.com_contexto(aluno_id=entrada.aluno_id)
            logger.warning(f"Reavaliação recusada para aluno {entrada.aluno_id}: {erro.mensagem}")
            return ResultadoProgressao(aluno_id=entrada.aluno_id, erro=erro.para_detalhe())

        logger.info(
            f"Aluno {entrada.aluno_id} reavaliado após exame extraordinário: "
            f"{decisao.estado.value} [{decisao.motivo.value}]"
        )
        return ResultadoProgressao(aluno_id=entrada.aluno_id, decisao=decisao)

    @staticmethod
    def _validar_compatibilidade(entrada: EntradaProgressao, politica: PoliticaClasse) -> None:
        if entrada.classe != politica.classe:
            raise ValueError(
                f"Política da {politica.classe}ª classe não se aplica a aluno da {entrada.classe}ª classe."
            )
        for disciplina in entrada.disciplinas:
            if disciplina.nota is not None and disciplina.nota > politica.escala_maxima:
                raise ValueError(
                    f"Nota {disciplina.nota} de {disciplina.nome} acima da escala "
                    f"máxima ({politica.escala_maxima})."
                )

    @staticmethod
    def _exigir_frequencia(entrada: EntradaProgressao) -> float:
        if entrada.frequencia is None:
            raise DadosIncompletos(f"Frequência anual em falta para o aluno {entrada.aluno_id}")
        return entrada.frequencia

    @staticmethod
    def _exigir_notas(disciplinas: Sequence[NotaDisciplina]) -> None:
        if not disciplinas:
            raise DadosIncompletos("Nenhuma disciplina informada; avaliação incompleta")
        pendentes = [d for d in disciplinas if d.nota is None]
        if pendentes:
            nomes = ", ".join(d.nome for d in pendentes)
            raise DadosIncompletos(
                f"Avaliação incompleta: disciplina(s) sem nota final resolvida: {nomes}",
                disciplina_id=pendentes[0].disciplina_id,
            )

    @staticmethod
    def _decidir(
        entrada: EntradaProgressao,
        politica: PoliticaClasse,
        versao_politica: Optional[str],
        decidido_em: Optional[datetime],
        arredondar: bool = True,
    ) -> DecisaoProgressao:
        frequencia = MotorProgressao._exigir_frequencia(entrada)
        base = dict(
            entrada=entrada,
            politica=politica,
            frequencia=frequencia,
            versao_politica=versao_politica,
            decidido_em=decidido_em,
        )

        if not PortaoFrequencia.verificar(frequencia, politica.frequencia_minima):
            return MotorProgressao._montar(
                **base,
                estado=EstadoTransicao.NAO_TRANSITA,
                motivo=MotivoDecisao.FREQUENCIA_INSUFICIENTE,
                observacao=GeradorObservacao.frequencia_insuficiente(frequencia, politica.frequencia_minima),
            )

        disciplinas = entrada.disciplinas
        MotorProgressao._exigir_notas(disciplinas)

        limiar = politica.limiar_aprovacao
        piso = politica.piso_condicional
        arredondadas = {d.disciplina_id: _nota(d.nota, arredondar) for d in disciplinas}
        base["disciplinas"] = disciplinas
        abaixo = [d for d in disciplinas if arredondadas[d.disciplina_id] < limiar]

        if not abaixo:
            return MotorProgressao._montar(
                **base,
                estado=EstadoTransicao.TRANSITA,
                motivo=MotivoDecisao.APROVACAO_PLENA,
                observacao=GeradorObservacao.aprovacao_plena(limiar, frequencia),
                tipo_exame=TipoExame.NACIONAL if politica.classe_terminal else None,
            )

        if not politica.permite_condicional:
            return MotorProgressao._montar(
                **base,
                estado=EstadoTransicao.NAO_TRANSITA,
                motivo=MotivoDecisao.ABAIXO_LIMIAR_CLASSE_TERMINAL,
                em_risco=abaixo,
                observacao=GeradorObservacao.abaixo_limiar(limiar, [d.nome for d in abaixo]),
            )

        abaixo_piso = [d for d in abaixo if arredondadas[d.disciplina_id] < piso]
        if abaixo_piso:
            return MotorProgressao._montar(
                **base,
                estado=EstadoTransicao.NAO_TRANSITA,
                motivo=MotivoDecisao.ABAIXO_PISO_CONDICIONAL,
                em_risco=abaixo_piso,
                observacao=GeradorObservacao.abaixo_limiar(piso, [d.nome for d in abaixo_piso]),
            )

        # A partir daqui todas as disciplinas abaixo do limiar estão na faixa [piso, limiar).
        if len(abaixo) > politica.maximo_disciplinas_condicionais:
            return MotorProgressao._montar(
                **base,
                estado=EstadoTransicao.NAO_TRANSITA,
                motivo=MotivoDecisao.EXCESSO_DISCIPLINAS_CONDICIONAIS,
                em_risco=abaixo,
                observacao=GeradorObservacao.abaixo_limiar(limiar, [d.nome for d in abaixo]),
            )

        nucleares = [d for d in abaixo if MotorProgressao.eh_nuclear(d, politica)]
        if len(nucleares) >= 2:
            return MotorProgressao._montar(
                **base,
                estado=EstadoTransicao.NAO_TRANSITA,
                motivo=MotivoDecisao.DISCIPLINAS_OBRIGATORIAS_ABAIXO_LIMIAR,
                em_risco=nucleares,
                observacao=GeradorObservacao.disciplinas_obrigatorias(limiar, [d.nome for d in nucleares]),
            )

        return MotorProgressao._montar(
            **base,
            estado=EstadoTransicao.MATRICULA_CONDICIONAL,
            motivo=MotivoDecisao.TRANSICAO_CONDICIONAL,
            em_risco=abaixo,
            observacao=GeradorObservacao.condicional(piso, limiar, [d.nome for d in abaixo]),
            tipo_exame=TipoExame.EXTRAORDINARIO,
            exame_exigido=True,
            conclusao_bloqueada=True,
        )

    @staticmethod
    def _decidir_exame(
        entrada: EntradaProgressao,
        politica: PoliticaClasse,
        decisao_anterior: DecisaoProgressao,
        notas_exame: Dict[str, float],
        versao_politica: Optional[str],
        decidido_em: Optional[datetime],
        arredondar: bool = True,
    ) -> DecisaoProgressao:
        em_falta = [d for d in decisao_anterior.disciplinas_em_risco if d not in notas_exame]
        if em_falta:
            raise DadosIncompletos(
                f"Resultado do exame extraordinário em falta para: {', '.join(em_falta)}",
                disciplina_id=em_falta[0],
            )
        for disciplina_id, nota in notas_exame.items():
            if not 0 <= nota <= politica.escala_maxima:
                raise ValueError(f"Nota de exame {nota} fora da escala para {disciplina_id}.")

        frequencia = MotorProgressao._exigir_frequencia(entrada)
        base = dict(
            entrada=entrada,
            politica=politica,
            frequencia=frequencia,
            versao_politica=versao_politica,
            decidido_em=decidido_em,
            tipo_exame=TipoExame.EXTRAORDINARIO,
            substitui_decisao_id=decisao_anterior.decisao_id,
        )

        if not PortaoFrequencia.verificar(frequencia, politica.frequencia_minima):
            return MotorProgressao._montar(
                **base,
                estado=EstadoTransicao.NAO_TRANSITA,
                motivo=MotivoDecisao.FREQUENCIA_INSUFICIENTE,
                observacao=GeradorObservacao.frequencia_insuficiente(frequencia, politica.frequencia_minima),
            )

        em_risco = set(decisao_anterior.disciplinas_em_risco)
        disciplinas = [
            d.model_copy(update={"nota": float(_nota(notas_exame[d.disciplina_id], arredondar)), "erro": None})
            if d.disciplina_id in em_risco
            else d
            for d in entrada.disciplinas
        ]
        MotorProgressao._exigir_notas(disciplinas)

        limiar = politica.limiar_aprovacao
        base["disciplinas"] = disciplinas
        abaixo = [d for d in disciplinas if _nota(d.nota, arredondar) < limiar]
        if not abaixo:
            return MotorProgressao._montar(
                **base,
                estado=EstadoTransicao.TRANSITA,
                motivo=MotivoDecisao.APROVACAO_PLENA,
                observacao=GeradorObservacao.aprovacao_plena(limiar, frequencia),
            )
        return MotorProgressao._montar(
            **base,
            estado=EstadoTransicao.NAO_TRANSITA,
            motivo=MotivoDecisao.EXAME_EXTRAORDINARIO_REPROVADO,
            em_risco=abaixo,
            observacao=GeradorObservacao.abaixo_limiar(limiar, [d.nome for d in abaixo]),
        )

    @staticmethod
    def _montar(
        entrada: EntradaProgressao,
        politica: PoliticaClasse,
        estado: EstadoTransicao,
        motivo: MotivoDecisao,
        observacao: str,
        frequencia: float,
        versao_politica: Optional[str],
        decidido_em: Optional[datetime],
        disciplinas: Sequence[NotaDisciplina] = (),
        em_risco: Sequence[NotaDisciplina] = (),
        tipo_exame: Optional[TipoExame] = None,
        exame_exigido: bool = False,
        conclusao_bloqueada: bool = False,
        substitui_decisao_id: Optional[str] = None,
    ) -> DecisaoProgressao:
        notas = [d.nota for d in disciplinas]
        return DecisaoProgressao(
            decisao_id=uuid.uuid4().hex,
            aluno_id=entrada.aluno_id,
            ano_lectivo=entrada.ano_lectivo,
            classe=entrada.classe,
            estado=estado,
            motivo=motivo,
            disciplinas_em_risco=[d.disciplina_id for d in em_risco],
            observacao=observacao,
            arredondamento_aplicado=any(arredondamento_altera(n) for n in notas),
            frequencia=frequencia,
            tipo_exame=tipo_exame,
            exame_exigido=exame_exigido,
            conclusao_bloqueada=conclusao_bloqueada,
            limiar_usado=politica.limiar_aprovacao,
            versao_politica=versao_politica,
            substitui_decisao_id=substitui_decisao_id,
            decidido_em=decidido_em or datetime.now(timezone.utc),
        )

    @staticmethod
    def _marcar_influencia(decisao: DecisaoProgressao, sem_arredondamento: DecisaoProgressao) -> DecisaoProgressao:
        """O arredondamento influenciou quando as notas sem arredondar levariam a outro resultado."""
        diferente = (
            decisao.estado != sem_arredondamento.estado
            or decisao.motivo != sem_arredondamento.motivo
            or decisao.disciplinas_em_risco != sem_arredondamento.disciplinas_em_risco
        )
        return decisao.model_copy(update={"arredondamento_influenciou": diferente})
