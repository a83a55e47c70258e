"""Fábrica de logger da aplicação.

Responsabilidades:
- Configurar o logger raiz do motor uma única vez
- Fornecer loggers filhos por módulo
- Direcionar saída para stdout
"""

import logging
import sys

from motor_avaliacao.config.settings import Configuracoes

NOME_RAIZ = "MOTOR_AVALIACAO"


class FabricaLogger:
    """Responsável por configurar e fornecer instâncias de Logger.

    Responsabilidades:
    - Configuração única do logger raiz
    - Formatação padronizada
    - Loggers filhos que herdam o handler da raiz
    """

    @classmethod
    def configurar(cls, nome: str = NOME_RAIZ):
        """Configura o logger se ainda não estiver configurado.

        Parâmetros:
        - nome (str): nome do logger

        Retorno:
        - logging.Logger: logger configurado
        """
        logger_instancia = logging.getLogger(nome)

        if not logger_instancia.handlers:
            logger_instancia.setLevel(Configuracoes.LOG_LEVEL)

            formatador = logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

            handler_console = logging.StreamHandler(sys.stdout)
            handler_console.setFormatter(formatador)
            logger_instancia.addHandler(handler_console)

            logger_instancia.propagate = False

        return logger_instancia

    @classmethod
    def obter(cls, modulo: str):
        """Retorna um logger filho da raiz para o módulo informado.

        Parâmetros:
        - modulo (str): sufixo do logger, ex. "progressao"

        Retorno:
        - logging.Logger: logger filho
        """
        cls.configurar()
        return logging.getLogger(f"{NOME_RAIZ}.{modulo}")


logger = FabricaLogger.configurar()
