"""Cálculo da nota final por aluno, disciplina e trimestre.

Responsabilidades:
- Selecionar a nota vigente de cada componente (a mais recente substitui)
- Avaliar componentes calculados na ordem de dependência
- Combinar componentes finais com os seus pesos e gerar o rastro auditável
- Agregar as notas trimestrais na nota anual segundo a regra configurada
"""

import math
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Union

from motor_avaliacao.application.component_resolver import ResolvedorComponentes
from motor_avaliacao.application.formula_evaluator import AvaliadorExpressao
from motor_avaliacao.application.rounding import arredondar_nota
from motor_avaliacao.config.settings import Configuracoes
from motor_avaliacao.domain.errors import (
    ConfiguracaoInvalida,
    ErroComputacao,
    ErroMotor,
    ErroValidacao,
    NotaForaDaEscala,
    NotaObrigatoriaEmFalta,
    SemPesoContributivo,
)
from motor_avaliacao.domain.grades import (
    ComponenteAvaliacao,
    NotaBruta,
    NotaFinal,
    PassoCalculo,
    RastroCalculo,
    RegraAgregacaoAnual,
    ResultadoNotaFinal,
)
from motor_avaliacao.util.logger import FabricaLogger

logger = FabricaLogger.obter("calculo")

TOLERANCIA_PESOS = 0.01


def _formatar(valor: float) -> str:
    if float(valor).is_integer():
        return str(int(valor))
    return f"{valor:.2f}"


class CalculadoraNotas:
    """Calculadora de notas finais de disciplina.

    Responsabilidades:
    - Produzir NotaFinal ou erro estruturado sem interromper lotes
    - Reportar pesos inconsistentes como aviso, nunca como erro
    """

    @staticmethod
    def classificar(nota: float, escala_maxima: float = Configuracoes.ESCALA_MAXIMA_PADRAO) -> str:
        """Classificação qualitativa sobre a nota arredondada.

        Os limites da escala de 0 a 20 são ajustados proporcionalmente à escala
        máxima do componente (ex.: 0 a 10 no ensino primário).
        """
        arredondada = arredondar_nota(nota)
        fator = escala_maxima / 20.0
        for rotulo, limite in Configuracoes.ESCALA_QUALITATIVA:
            if arredondada >= limite * fator:
                return rotulo
        return Configuracoes.ESCALA_QUALITATIVA[-1][0]

    @staticmethod
    def contribuintes(
        componentes: Sequence[ComponenteAvaliacao], dependencias: Dict[str, List[str]]
    ) -> List[ComponenteAvaliacao]:
        """Componentes de nível final, cujos pesos formam a nota da disciplina.

        - Marcação explícita (contribui_nota_final) prevalece quando existir
        - Senão, os calculados de que nenhum outro componente depende, junto com
          os lançados com peso que nenhuma fórmula lê
        - Sem calculados, todos os componentes lançados
        """
        if any(c.contribui_nota_final is not None for c in componentes):
            return [c for c in componentes if c.contribui_nota_final]

        if not any(c.calculado for c in componentes):
            return list(componentes)

        usados = {dep for deps in dependencias.values() for dep in deps}
        return [c for c in componentes if c.id not in usados and (c.calculado or c.peso > 0)]

    @staticmethod
    def validar_pesos(componentes: Sequence[ComponenteAvaliacao]) -> List[str]:
        """Avisos sobre a soma dos pesos dos componentes finais.

        Retorno:
        - list[str]: mensagens de aviso (vazia quando os pesos somam 100%)
        """
        aplicaveis = list(componentes)
        por_id = {c.id: c for c in aplicaveis}
        try:
            dependencias = {c.id: ResolvedorComponentes.dependencias(c, por_id) for c in aplicaveis}
        except ErroMotor as erro:
            return [erro.mensagem]

        finais = CalculadoraNotas.contribuintes(aplicaveis, dependencias)
        soma = math.fsum(c.peso for c in finais)
        if abs(soma - 100.0) > TOLERANCIA_PESOS:
            codigos = ", ".join(c.codigo for c in finais)
            return [f"Os pesos dos componentes finais ({codigos}) devem somar 100%. Atual: {_formatar(soma)}%"]
        return []

    @staticmethod
    def selecionar_notas(notas: Iterable[NotaBruta], aluno_id: str, trimestre: int) -> Dict[str, NotaBruta]:
        """Retorna a nota vigente por componente.

        A nota com registado_em mais recente substitui as anteriores; sem data,
        prevalece a última fornecida.
        """
        vigentes: Dict[str, NotaBruta] = {}
        for nota in notas:
            if nota.aluno_id != aluno_id or nota.trimestre != trimestre:
                continue
            anterior = vigentes.get(nota.componente_id)
            if anterior is None or nota.registado_em is None and anterior.registado_em is None:
                vigentes[nota.componente_id] = nota
            elif nota.registado_em is not None and (
                anterior.registado_em is None or nota.registado_em >= anterior.registado_em
            ):
                vigentes[nota.componente_id] = nota
        return vigentes

    @staticmethod
    def calcular(
        aluno_id: str,
        disciplina_id: str,
        trimestre: int,
        componentes: Sequence[ComponenteAvaliacao],
        notas: Iterable[NotaBruta],
        calculado_em: Optional[datetime] = None,
    ) -> ResultadoNotaFinal:
        """Calcula a nota trimestral (MT) de um aluno numa disciplina.

        Parâmetros:
        - aluno_id (str): aluno avaliado
        - disciplina_id (str): disciplina
        - trimestre (int): 1 a 3
        - componentes (Sequence[ComponenteAvaliacao]): componentes da disciplina
        - notas (Iterable[NotaBruta]): notas lançadas (podem incluir substituídas)
        - calculado_em (datetime | None): instante do cálculo

        Retorno:
        - ResultadoNotaFinal: nota ou erro estruturado
        """
        try:
            nota = CalculadoraNotas._calcular_trimestre(
                aluno_id, disciplina_id, trimestre, componentes, notas, calculado_em
            )
            return ResultadoNotaFinal(
                aluno_id=aluno_id, disciplina_id=disciplina_id, trimestre=trimestre, nota=nota
            )
        except ErroMotor as erro:
            erro.com_contexto(disciplina_id=disciplina_id, trimestre=trimestre, aluno_id=aluno_id)
            logger.warning(
                f"Disciplina {disciplina_id} (trimestre {trimestre}) não resolvida "
                f"para aluno {aluno_id}: [{erro.codigo}] {erro.mensagem}"
            )
            return ResultadoNotaFinal(
                aluno_id=aluno_id,
                disciplina_id=disciplina_id,
                trimestre=trimestre,
                erro=erro.para_detalhe(),
            )

    @staticmethod
    def _calcular_trimestre(
        aluno_id: str,
        disciplina_id: str,
        trimestre: int,
        componentes: Sequence[ComponenteAvaliacao],
        notas: Iterable[NotaBruta],
        calculado_em: Optional[datetime],
    ) -> NotaFinal:
        aplicaveis = [
            c
            for c in componentes
            if c.disciplina_id == disciplina_id
            and c.tipo_calculo == "trimestral"
            and (c.trimestre is None or c.trimestre == trimestre)
        ]
        if not aplicaveis:
            raise ConfiguracaoInvalida(
                f"Nenhum componente trimestral configurado para a disciplina {disciplina_id}"
            )

        ordem = ResolvedorComponentes.ordenar(aplicaveis)
        por_id = {c.id: c for c in aplicaveis}
        dependencias = {c.id: ResolvedorComponentes.dependencias(c, por_id) for c in aplicaveis}
        vigentes = CalculadoraNotas.selecionar_notas(notas, aluno_id, trimestre)

        valores: Dict[str, Union[int, float]] = {}
        ausentes: List[str] = []
        for componente in ordem:
            if componente.calculado:
                try:
                    valores[componente.codigo] = AvaliadorExpressao.avaliar(componente.formula, valores)
                except (ErroComputacao, ErroValidacao) as erro:
                    erro.componente = erro.componente or componente.codigo
                    raise
                continue

            nota = vigentes.get(componente.id)
            if nota is None:
                if componente.obrigatorio:
                    raise NotaObrigatoriaEmFalta(
                        f"Nota obrigatória em falta para '{componente.nome}' no {trimestre}º trimestre",
                        componente=componente.codigo,
                    )
                ausentes.append(componente.codigo)
                continue
            if not componente.escala_minima <= nota.valor <= componente.escala_maxima:
                raise NotaForaDaEscala(
                    f"Nota {_formatar(nota.valor)} de '{componente.nome}' fora da escala "
                    f"{_formatar(componente.escala_minima)}-{_formatar(componente.escala_maxima)}",
                    componente=componente.codigo,
                )
            valores[componente.codigo] = nota.valor

        finais = CalculadoraNotas.contribuintes(aplicaveis, dependencias)
        avisos = CalculadoraNotas.validar_pesos(aplicaveis)
        avisos += [f"Componente opcional '{codigo}' sem nota; excluído da média" for codigo in ausentes]

        presentes = [c for c in finais if c.codigo in valores]
        peso_total = math.fsum(c.peso for c in presentes)
        if peso_total <= 0:
            raise SemPesoContributivo(
                f"Nenhum componente final com peso e nota na disciplina {disciplina_id}"
            )

        fator = 100.0 / peso_total
        try:
            nota_final = math.fsum(valores[c.codigo] * c.peso for c in presentes) / peso_total
        except OverflowError as erro:
            raise ErroComputacao(f"Nota final da disciplina {disciplina_id} fora do intervalo numérico") from erro
        if not math.isfinite(nota_final):
            raise ErroComputacao(f"Nota final não finita na disciplina {disciplina_id}")
        rastro = CalculadoraNotas._montar_rastro(ordem, finais, valores, peso_total, fator, nota_final)
        escala = max(c.escala_maxima for c in finais)

        return NotaFinal(
            aluno_id=aluno_id,
            disciplina_id=disciplina_id,
            trimestre=trimestre,
            nota_final=nota_final,
            classificacao=CalculadoraNotas.classificar(nota_final, escala),
            rastro=rastro,
            avisos=avisos,
            calculado_em=calculado_em or datetime.now(timezone.utc),
        )

    @staticmethod
    def _montar_rastro(
        ordem: Sequence[ComponenteAvaliacao],
        finais: Sequence[ComponenteAvaliacao],
        valores: Dict[str, Union[int, float]],
        peso_total: float,
        fator: float,
        nota_final: float,
    ) -> RastroCalculo:
        passos = []
        termos = []
        parcelas = []
        for componente in finais:
            valor = valores.get(componente.codigo)
            if valor is None:
                passos.append(
                    PassoCalculo(
                        componente_id=componente.id,
                        codigo=componente.codigo,
                        peso=componente.peso,
                        formula=componente.formula,
                        calculo="sem nota",
                        ausente=True,
                    )
                )
                continue
            contribuicao = valor * componente.peso / 100.0 * fator
            peso_decimal = componente.peso / 100.0
            passos.append(
                PassoCalculo(
                    componente_id=componente.id,
                    codigo=componente.codigo,
                    valor=float(valor),
                    peso=componente.peso,
                    contribuicao=contribuicao,
                    calculo=f"{peso_decimal:.2f} × {_formatar(valor)} = {valor * peso_decimal:.2f}",
                    formula=componente.formula,
                )
            )
            termos.append(f"{peso_decimal:.2f}×{_formatar(valor)}")
            parcelas.append(f"{contribuicao:.2f}")

        expressao = f"{' + '.join(termos)} = {' + '.join(parcelas)} = {nota_final:.2f}"
        if abs(fator - 1.0) > 1e-9:
            expressao += f" (normalizado por {_formatar(peso_total)}%)"

        return RastroCalculo(
            ordem_avaliacao=[c.codigo for c in ordem],
            valores_calculados={c.codigo: float(valores[c.codigo]) for c in ordem if c.calculado},
            passos=passos,
            peso_total=peso_total,
            fator_normalizacao=fator,
            expressao_completa=expressao,
        )

    @staticmethod
    def agregar_anual(
        aluno_id: str,
        disciplina_id: str,
        notas_trimestrais: Dict[int, Union[float, NotaFinal]],
        regra: Optional[RegraAgregacaoAnual] = None,
        escala_maxima: float = Configuracoes.ESCALA_MAXIMA_PADRAO,
        calculado_em: Optional[datetime] = None,
        componentes: Sequence[ComponenteAvaliacao] = (),
        notas: Iterable[NotaBruta] = (),
    ) -> ResultadoNotaFinal:
        """Agrega as notas trimestrais na nota anual (MF).

        Componentes anuais configurados para a disciplina prevalecem sobre a
        regra: as fórmulas leem T1, T2, T3 e as notas lançadas no 3º trimestre.

        Parâmetros:
        - notas_trimestrais (dict): trimestre -> nota ou NotaFinal
        - regra (RegraAgregacaoAnual | None): agregação sem componentes anuais
        - componentes (Sequence[ComponenteAvaliacao]): componentes da disciplina
        - notas (Iterable[NotaBruta]): notas lançadas, lidas só no 3º trimestre

        Retorno:
        - ResultadoNotaFinal: nota anual (trimestre nulo) ou erro estruturado
        """
        regra = regra or RegraAgregacaoAnual()
        try:
            nota = CalculadoraNotas._agregar(
                aluno_id, disciplina_id, notas_trimestrais, regra, escala_maxima, calculado_em, componentes, notas
            )
            return ResultadoNotaFinal(aluno_id=aluno_id, disciplina_id=disciplina_id, nota=nota)
        except ErroMotor as erro:
            erro.com_contexto(disciplina_id=disciplina_id, aluno_id=aluno_id)
            logger.warning(
                f"Nota anual de {disciplina_id} não resolvida para aluno {aluno_id}: "
                f"[{erro.codigo}] {erro.mensagem}"
            )
            return ResultadoNotaFinal(aluno_id=aluno_id, disciplina_id=disciplina_id, erro=erro.para_detalhe())

    @staticmethod
    def _agregar(
        aluno_id: str,
        disciplina_id: str,
        notas_trimestrais: Dict[int, Union[float, NotaFinal]],
        regra: RegraAgregacaoAnual,
        escala_maxima: float,
        calculado_em: Optional[datetime],
        componentes: Sequence[ComponenteAvaliacao] = (),
        notas: Iterable[NotaBruta] = (),
    ) -> NotaFinal:
        valores: Dict[str, float] = {}
        for trimestre in regra.trimestres:
            nota = notas_trimestrais.get(trimestre)
            if nota is None:
                raise NotaObrigatoriaEmFalta(
                    f"Nota do {trimestre}º trimestre em falta para a nota anual",
                    componente=f"T{trimestre}",
                )
            valores[f"T{trimestre}"] = nota.nota_final if isinstance(nota, NotaFinal) else float(nota)

        anuais = [c for c in componentes if c.disciplina_id == disciplina_id and c.tipo_calculo == "anual"]
        if anuais:
            nota_final, rastro = CalculadoraNotas._avaliar_anuais(
                aluno_id, disciplina_id, anuais, componentes, valores, notas, escala_maxima
            )
        elif regra.formula is not None:
            validacao = AvaliadorExpressao.validar(regra.formula, ["T1", "T2", "T3"])
            if not validacao.valida:
                raise ErroValidacao(f"Regra anual inválida: {validacao.mensagem}")
            nota_final = float(AvaliadorExpressao.avaliar(regra.formula, valores))
            passos = [
                PassoCalculo(componente_id=codigo, codigo=codigo, valor=valor, peso=0.0, calculo=_formatar(valor))
                for codigo, valor in valores.items()
            ]
            rastro = RastroCalculo(
                ordem_avaliacao=list(valores),
                passos=passos,
                expressao_completa=f"{regra.formula} = {nota_final:.2f}",
            )
        else:
            pesos = {f"T{t}": regra.pesos_trimestres[t] for t in regra.trimestres}
            peso_total = math.fsum(pesos.values())
            nota_final = math.fsum(valores[c] * pesos[c] for c in valores) / peso_total
            passos = []
            for codigo, valor in valores.items():
                peso_percentual = pesos[codigo] / peso_total * 100.0
                contribuicao = valor * pesos[codigo] / peso_total
                passos.append(
                    PassoCalculo(
                        componente_id=codigo,
                        codigo=codigo,
                        valor=valor,
                        peso=peso_percentual,
                        contribuicao=contribuicao,
                        calculo=f"{peso_percentual / 100.0:.2f} × {_formatar(valor)} = {contribuicao:.2f}",
                    )
                )
            rastro = RastroCalculo(
                ordem_avaliacao=list(valores),
                passos=passos,
                peso_total=100.0,
                expressao_completa=(
                    " + ".join(p.calculo.split(" = ")[0].replace(" ", "") for p in passos)
                    + f" = {nota_final:.2f} ({regra.descricao})"
                ),
            )

        if not math.isfinite(nota_final):
            raise ErroComputacao(f"Nota anual não finita na disciplina {disciplina_id}")

        return NotaFinal(
            aluno_id=aluno_id,
            disciplina_id=disciplina_id,
            trimestre=None,
            nota_final=nota_final,
            classificacao=CalculadoraNotas.classificar(nota_final, escala_maxima),
            rastro=rastro,
            calculado_em=calculado_em or datetime.now(timezone.utc),
        )

    @staticmethod
    def _avaliar_anuais(
        aluno_id: str,
        disciplina_id: str,
        anuais: Sequence[ComponenteAvaliacao],
        componentes: Sequence[ComponenteAvaliacao],
        trimestrais: Dict[str, float],
        notas: Iterable[NotaBruta],
        escala_maxima: float,
    ):
        medias = [
            ComponenteAvaliacao(id=codigo, disciplina_id=disciplina_id, nome=codigo, escala_maxima=escala_maxima)
            for codigo in trimestrais
        ]
        terceiro = [
            c
            for c in componentes
            if c.disciplina_id == disciplina_id
            and c.tipo_calculo == "trimestral"
            and not c.calculado
            and c.trimestre in (None, 3)
        ]
        universo = medias + terceiro + list(anuais)
        ordem = ResolvedorComponentes.ordenar(universo)
        por_id = {c.id: c for c in universo}
        dependencias = {c.id: ResolvedorComponentes.dependencias(c, por_id) for c in anuais}

        valores: Dict[str, Union[int, float]] = dict(trimestrais)
        vigentes = CalculadoraNotas.selecionar_notas(notas, aluno_id, 3)
        for componente in terceiro:
            nota = vigentes.get(componente.id)
            if nota is None:
                continue
            if not componente.escala_minima <= nota.valor <= componente.escala_maxima:
                raise NotaForaDaEscala(
                    f"Nota {_formatar(nota.valor)} de '{componente.nome}' fora da escala "
                    f"{_formatar(componente.escala_minima)}-{_formatar(componente.escala_maxima)}",
                    componente=componente.codigo,
                    trimestre=3,
                )
            valores[componente.codigo] = nota.valor

        calculados = [c for c in ordem if c.tipo_calculo == "anual"]
        for componente in calculados:
            try:
                valores[componente.codigo] = AvaliadorExpressao.avaliar(componente.formula, valores)
            except (ErroComputacao, ErroValidacao) as erro:
                erro.componente = erro.componente or componente.codigo
                raise

        finais = CalculadoraNotas.contribuintes(anuais, dependencias)
        if len(finais) == 1:
            nota_final = float(valores[finais[0].codigo])
            peso_total = 100.0
            expressao = f"{finais[0].codigo} = {finais[0].formula} = {nota_final:.2f}"
        else:
            peso_total = math.fsum(c.peso for c in finais)
            if peso_total <= 0:
                raise SemPesoContributivo(
                    f"Nenhum componente anual final com peso na disciplina {disciplina_id}"
                )
            nota_final = math.fsum(valores[c.codigo] * c.peso for c in finais) / peso_total
            termos = " + ".join(f"{c.peso / 100.0:.2f}×{_formatar(valores[c.codigo])}" for c in finais)
            expressao = f"{termos} = {nota_final:.2f}"

        passos = [
            PassoCalculo(
                componente_id=c.id,
                codigo=c.codigo,
                valor=float(valores[c.codigo]),
                peso=c.peso,
                formula=c.formula,
                calculo=f"{c.formula} = {_formatar(valores[c.codigo])}",
            )
            for c in calculados
        ]
        rastro = RastroCalculo(
            ordem_avaliacao=[c.codigo for c in calculados],
            valores_calculados={c.codigo: float(valores[c.codigo]) for c in calculados},
            passos=passos,
            peso_total=peso_total,
            expressao_completa=expressao,
        )
        return nota_final, rastro
