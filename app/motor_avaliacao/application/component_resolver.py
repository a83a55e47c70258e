"""Resolução da ordem de avaliação dos componentes de uma disciplina.

Responsabilidades:
- Montar o grafo de dependências (explícitas e lidas da fórmula)
- Ordenar topologicamente com desempate estável pela ordem de exibição
- Detectar ciclos e dependências fora da disciplina/trimestre
"""

import heapq
from typing import Dict, List, Sequence, Set

from motor_avaliacao.application.formula_evaluator import AvaliadorExpressao
from motor_avaliacao.domain.errors import ComponenteDesconhecido, ConfiguracaoInvalida, DependenciaCiclica
from motor_avaliacao.domain.grades import ComponenteAvaliacao


class ResolvedorComponentes:
    """Ordena componentes de forma que cada calculado venha depois das suas dependências."""

    @staticmethod
    def dependencias(
        componente: ComponenteAvaliacao, por_id: Dict[str, ComponenteAvaliacao]
    ) -> List[str]:
        """Retorna os ids de que o componente depende.

        Une a lista explícita de dependências com os códigos lidos da fórmula.

        Exceções:
        - ComponenteDesconhecido: dependência inexistente ou de outra disciplina/trimestre
        - ErroValidacao: fórmula inválida
        """
        if not componente.calculado:
            return []

        por_codigo = {c.codigo: c for c in por_id.values()}
        ids: List[str] = []

        for dependencia_id in componente.dependencias:
            if dependencia_id not in por_id:
                raise ComponenteDesconhecido(
                    f"Componente '{componente.codigo}' depende de '{dependencia_id}', "
                    "que não pertence a esta disciplina/trimestre",
                    componente=dependencia_id,
                    disciplina_id=componente.disciplina_id,
                )
            ids.append(dependencia_id)

        for codigo in AvaliadorExpressao.identificadores(componente.formula):
            if codigo not in por_codigo:
                raise ComponenteDesconhecido(
                    f"Fórmula de '{componente.codigo}' referencia '{codigo}', "
                    "que não pertence a esta disciplina/trimestre",
                    componente=codigo,
                    disciplina_id=componente.disciplina_id,
                )
            ids.append(por_codigo[codigo].id)

        for dependencia_id in ids:
            dependencia = por_id[dependencia_id]
            mesmo_trimestre = (
                dependencia.trimestre is None
                or componente.trimestre is None
                or dependencia.trimestre == componente.trimestre
            )
            if dependencia.disciplina_id != componente.disciplina_id or not mesmo_trimestre:
                raise ComponenteDesconhecido(
                    f"Componente '{componente.codigo}' depende de '{dependencia.codigo}', "
                    "de outra disciplina ou trimestre",
                    componente=dependencia.codigo,
                    disciplina_id=componente.disciplina_id,
                )

        return list(dict.fromkeys(ids))

    @staticmethod
    def ordenar(componentes: Sequence[ComponenteAvaliacao]) -> List[ComponenteAvaliacao]:
        """Ordena os componentes (algoritmo de Kahn).

        Componentes independentes saem pela ordem de exibição e depois pelo id,
        para que o rastro seja reproduzível entre execuções.

        Exceções:
        - DependenciaCiclica: quando o grafo tem ciclo
        - ComponenteDesconhecido: quando uma dependência não existe no conjunto
        """
        por_id: Dict[str, ComponenteAvaliacao] = {}
        for componente in componentes:
            if componente.id in por_id:
                raise ConfiguracaoInvalida(f"Componente duplicado: '{componente.id}'.")
            por_id[componente.id] = componente

        codigos = [c.codigo for c in componentes]
        repetidos = sorted({c for c in codigos if codigos.count(c) > 1})
        if repetidos:
            raise ConfiguracaoInvalida(f"Códigos de componente repetidos: {repetidos}")

        dependencias = {
            componente.id: ResolvedorComponentes.dependencias(componente, por_id)
            for componente in componentes
        }
        dependentes: Dict[str, List[str]] = {componente_id: [] for componente_id in por_id}
        pendentes = {componente_id: len(deps) for componente_id, deps in dependencias.items()}
        for componente_id, deps in dependencias.items():
            for dependencia_id in deps:
                dependentes[dependencia_id].append(componente_id)

        def chave(componente_id: str):
            return (por_id[componente_id].ordem, componente_id)

        prontos = [chave(cid) for cid, quantidade in pendentes.items() if quantidade == 0]
        heapq.heapify(prontos)

        ordenados: List[ComponenteAvaliacao] = []
        while prontos:
            _, componente_id = heapq.heappop(prontos)
            ordenados.append(por_id[componente_id])
            for dependente_id in dependentes[componente_id]:
                pendentes[dependente_id] -= 1
                if pendentes[dependente_id] == 0:
                    heapq.heappush(prontos, chave(dependente_id))

        if len(ordenados) != len(por_id):
            restantes = {cid for cid, quantidade in pendentes.items() if quantidade > 0}
            ciclo = ResolvedorComponentes._encontrar_ciclo(restantes, dependencias, chave)
            membro = por_id[ciclo[0]]
            caminho = " -> ".join(por_id[cid].codigo for cid in ciclo + [ciclo[0]])
            raise DependenciaCiclica(
                f"Dependência cíclica envolvendo '{membro.codigo}': {caminho}",
                componente=membro.codigo,
                disciplina_id=membro.disciplina_id,
                trimestre=membro.trimestre,
            )

        return ordenados

    @staticmethod
    def _encontrar_ciclo(restantes: Set[str], dependencias: Dict[str, List[str]], chave) -> List[str]:
        """Segue dependências não resolvidas até repetir um nó; o trecho repetido é o ciclo."""
        atual = min(restantes, key=chave)
        visitados: List[str] = []
        while atual not in visitados:
            visitados.append(atual)
            atual = min((d for d in dependencias[atual] if d in restantes), key=chave)
        ciclo = visitados[visitados.index(atual):]
        inicio = ciclo.index(min(ciclo, key=chave))
        return ciclo[inicio:] + ciclo[:inicio]
