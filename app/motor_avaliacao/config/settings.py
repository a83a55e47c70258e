"""Configurações centrais do projeto.

Responsabilidades:
- Definir caminhos de arquivos
- Definir valores de referência usados pelos chamadores do motor
- Definir a escala qualitativa de classificação
"""

import os
from pathlib import Path


class Configuracoes:
    """Centraliza configurações da aplicação.

    Responsabilidades:
    - Fornecer caminhos de diretórios
    - Declarar limiares de referência
    - Controlar o log de auditoria
    """

    BASE_DIR = Path(__file__).resolve().parents[2]
    LOG_DIR = os.path.join(BASE_DIR, "logs")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Valores oficiais de referência; a decisão usa sempre a política recebida.
    FREQUENCIA_MINIMA = float(os.getenv("FREQUENCIA_MINIMA", "66.67"))
    ESCALA_MAXIMA_PADRAO = float(os.getenv("ESCALA_MAXIMA_PADRAO", "20"))

    PORT = int(os.getenv("PORT", "8000"))

    POLITICAS_PATH = os.getenv("POLITICAS_PATH")

    AUDIT_LOG_ENABLED = os.getenv("AUDIT_LOG_ENABLED", "true").lower() in ("1", "true", "yes")
    AUDIT_LOG_PATH = os.path.abspath(
        os.getenv("AUDIT_LOG_PATH", os.path.join(LOG_DIR, "auditoria_decisoes.jsonl"))
    )
    LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024)))

    # Limites inferiores na escala de 0 a 20.
    ESCALA_QUALITATIVA = [
        ("Excelente", 17),
        ("Bom", 14),
        ("Suficiente", 10),
        ("Insuficiente", 0),
    ]

    TRIMESTRES = [1, 2, 3]

    COLUNAS_NOTAS = ["ALUNO_ID", "COMPONENTE_ID", "TRIMESTRE", "VALOR"]
